"""
Ledger JSON-RPC interface

LedgerRpc is the seam between the minter core and the network. Every method
is a coroutine and each call is one request/response; nothing here retries.
HttpLedgerRpc speaks Solana's JSON-RPC 2.0 over httpx.

Based on: https://solana.com/docs/rpc
"""

import base64
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import httpx

from ..core.accounts import SolanaAccount

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """A JSON-RPC error object or a transport failure."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        self.code = code
        self.data = data
        super().__init__(f"RPC error {code}: {message}" if code is not None else f"RPC error: {message}")


class LedgerRpc(ABC):
    """The ledger reads and writes the minter depends on."""

    @abstractmethod
    async def get_account_info(self, address: str) -> Optional[SolanaAccount]:
        """Raw account bytes, or None if the account does not exist."""

    @abstractmethod
    async def get_parsed_account_info(self, address: str) -> Optional[Dict[str, Any]]:
        """Account with jsonParsed data, or None if absent."""

    @abstractmethod
    async def get_token_accounts_by_owner(self, owner: str, program_id: str) -> List[Dict[str, Any]]:
        """[{"pubkey": ..., "account": {... "data": <jsonParsed>}}] for one token program."""

    @abstractmethod
    async def get_latest_blockhash(self) -> str:
        ...

    @abstractmethod
    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        ...

    @abstractmethod
    async def send_transaction(self, wire: bytes) -> str:
        """Submit serialized transaction bytes; returns the signature."""

    @abstractmethod
    async def get_signature_statuses(self, signatures: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """One status per signature: None if unknown, else {"confirmationStatus", "err", "slot"}."""


class HttpLedgerRpc(LedgerRpc):
    """Direct JSON-RPC client for a Solana cluster."""

    def __init__(self, rpc_url: str, commitment: str = "confirmed",
                 timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._request_id = 0

    async def __aenter__(self) -> 'HttpLedgerRpc':
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _next_id(self) -> int:
        self._request_id += 1
        return self._request_id

    async def call(self, method: str, params: list) -> Any:
        """
        Execute a raw RPC call and return its "result" member.

        Raises:
            RpcError: HTTP failure, malformed response, or a JSON-RPC error object
        """
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_id(),
            "method": method,
            "params": params,
        }
        logger.debug("RPC %s %s", method, params)

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise RpcError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise RpcError(f"{method} returned invalid JSON: {e}") from e

        if not isinstance(result, dict):
            raise RpcError(f"{method} returned a non-object response")
        if "error" in result:
            error = result["error"] or {}
            raise RpcError(error.get("message", "unknown error"), error.get("code"), error.get("data"))
        if "result" not in result:
            raise RpcError(f"{method} response has no result")
        return result["result"]

    @staticmethod
    def _value(method: str, result: Any) -> Any:
        """The "value" member of a context-wrapped result."""
        try:
            return result["value"]
        except (KeyError, TypeError) as e:
            raise RpcError(f"{method} returned malformed result: {e!r}") from e

    async def get_account_info(self, address: str) -> Optional[SolanaAccount]:
        result = await self.call("getAccountInfo", [
            address, {"encoding": "base64", "commitment": self.commitment},
        ])
        value = self._value("getAccountInfo", result)
        if value is None:
            return None
        try:
            data_b64, encoding = value["data"]
            if encoding != "base64":
                raise RpcError(f"getAccountInfo returned {encoding} data")
            return SolanaAccount(
                lamports=value["lamports"],
                data=base64.b64decode(data_b64),
                owner=value["owner"],
                executable=value["executable"],
                rent_epoch=value.get("rentEpoch", 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise RpcError(f"getAccountInfo returned malformed account: {e}") from e

    async def get_parsed_account_info(self, address: str) -> Optional[Dict[str, Any]]:
        result = await self.call("getAccountInfo", [
            address, {"encoding": "jsonParsed", "commitment": self.commitment},
        ])
        return self._value("getAccountInfo", result)

    async def get_token_accounts_by_owner(self, owner: str, program_id: str) -> List[Dict[str, Any]]:
        result = await self.call("getTokenAccountsByOwner", [
            owner,
            {"programId": program_id},
            {"encoding": "jsonParsed", "commitment": self.commitment},
        ])
        entries = self._value("getTokenAccountsByOwner", result)
        if not isinstance(entries, list):
            raise RpcError("getTokenAccountsByOwner returned a non-list value")
        return entries

    async def get_latest_blockhash(self) -> str:
        result = await self.call("getLatestBlockhash", [{"commitment": self.commitment}])
        try:
            return self._value("getLatestBlockhash", result)["blockhash"]
        except (KeyError, TypeError) as e:
            raise RpcError(f"getLatestBlockhash returned malformed result: {e!r}") from e

    async def get_minimum_balance_for_rent_exemption(self, space: int) -> int:
        return await self.call("getMinimumBalanceForRentExemption", [space])

    async def send_transaction(self, wire: bytes) -> str:
        return await self.call("sendTransaction", [
            base64.b64encode(wire).decode("ascii"),
            {"encoding": "base64", "preflightCommitment": self.commitment},
        ])

    async def get_signature_statuses(self, signatures: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        result = await self.call("getSignatureStatuses", [list(signatures)])
        statuses = self._value("getSignatureStatuses", result)
        if not isinstance(statuses, list):
            raise RpcError("getSignatureStatuses returned a non-list value")
        return statuses
