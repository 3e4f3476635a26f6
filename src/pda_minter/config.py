"""
Minter configuration

Settings resolve in this order: explicit values (CLI flags) > environment
variables > defaults. A cluster moniker picks both the RPC endpoint and the
minter program deployment for that cluster.
"""

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from .core.keys import validate_address
from .errors import InvalidParameter
from .programs.minter import program_id_for_cluster

CLUSTER_URLS = {
    "localnet": "http://127.0.0.1:8899",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}

DEFAULT_CLUSTER = "devnet"
DEFAULT_KEYPAIR_PATH = Path.home() / ".config" / "solana" / "id.json"

ENV_PREFIX = "MINTER_"


@dataclass(frozen=True)
class MinterConfig:
    cluster: str = DEFAULT_CLUSTER
    rpc_url: str = CLUSTER_URLS[DEFAULT_CLUSTER]
    keypair_path: Path = DEFAULT_KEYPAIR_PATH
    program_id: str = field(default_factory=lambda: program_id_for_cluster(DEFAULT_CLUSTER))
    commitment: str = "confirmed"
    confirm_attempts: int = 30
    poll_interval: float = 0.5
    request_timeout: float = 30.0

    @classmethod
    def load(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> 'MinterConfig':
        """
        Build a config from the environment plus explicit overrides.

        Overrides set to None are ignored so argparse namespaces can be passed
        straight through.
        """
        env = os.environ if env is None else env
        values = {k: v for k, v in overrides.items() if v is not None}

        cluster = values.get("cluster") or env.get(ENV_PREFIX + "CLUSTER") or DEFAULT_CLUSTER
        if cluster not in CLUSTER_URLS:
            raise InvalidParameter(
                f"Unknown cluster {cluster!r}; expected one of {', '.join(CLUSTER_URLS)}")

        # An explicit cluster also outranks the environment's endpoint and program
        cluster_env = {} if "cluster" in values else env
        settings = {
            "cluster": cluster,
            "rpc_url": cluster_env.get(ENV_PREFIX + "RPC_URL") or CLUSTER_URLS[cluster],
            "keypair_path": env.get(ENV_PREFIX + "KEYPAIR") or DEFAULT_KEYPAIR_PATH,
            "program_id": cluster_env.get(ENV_PREFIX + "PROGRAM_ID") or program_id_for_cluster(cluster),
            "commitment": env.get(ENV_PREFIX + "COMMITMENT") or "confirmed",
        }
        settings.update(values)
        settings["keypair_path"] = Path(settings["keypair_path"]).expanduser()

        config = replace(cls(), **settings)
        config.validate()
        return config

    def validate(self) -> None:
        validate_address(self.program_id)
        if self.commitment not in ("processed", "confirmed", "finalized"):
            raise InvalidParameter(f"Unknown commitment {self.commitment!r}")
        if self.confirm_attempts < 1:
            raise InvalidParameter("confirm_attempts must be at least 1")
        if self.poll_interval < 0 or self.request_timeout <= 0:
            raise InvalidParameter("Intervals and timeouts must be positive")
