"""
Solana Account Model

Every piece of ledger state lives in an account:
- Each account has an owner program, the only program allowed to modify its data
- Programs are stateless; token mints and balances are data accounts owned by
  the SPL Token program
- Storage must be prepaid: an account holding at least two years of rent is
  rent-exempt and is never garbage collected

Based on: https://solana.com/docs/core/accounts
"""

from dataclasses import dataclass

from .keys import validate_address

LAMPORTS_PER_SOL = 1_000_000_000

# Default rent parameters of every public cluster
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2
ACCOUNT_STORAGE_OVERHEAD = 128

MAX_ACCOUNT_DATA = 10 * 1024 * 1024


def rent_exempt_minimum(space: int) -> int:
    """
    Minimum lamports for an account of `space` data bytes to be rent-exempt.

    Matches getMinimumBalanceForRentExemption on a cluster running the default
    rent parameters (a mint of 82 bytes needs 1_461_600 lamports).
    """
    if space < 0:
        raise ValueError("Account space cannot be negative")
    return (ACCOUNT_STORAGE_OVERHEAD + space) * LAMPORTS_PER_BYTE_YEAR * EXEMPTION_THRESHOLD_YEARS


@dataclass
class SolanaAccount:
    """
    Raw account as returned by the ledger.

    The data bytes are opaque here; program modules decode them into typed
    records and reject anything that does not fit their layout.
    """
    lamports: int           # Balance in lamports (1 SOL = 1_000_000_000 lamports)
    data: bytes             # Account data (up to 10 MiB)
    owner: str              # Program ID that owns this account
    executable: bool        # Whether this account contains executable code
    rent_epoch: int = 0     # Legacy field

    def __post_init__(self):
        if self.lamports < 0:
            raise ValueError("Lamports cannot be negative")
        if len(self.data) > MAX_ACCOUNT_DATA:
            raise ValueError("Account data exceeds 10 MiB limit")

    @property
    def sol_balance(self) -> float:
        """Convert lamports to SOL for human-readable display."""
        return self.lamports / LAMPORTS_PER_SOL

    def is_rent_exempt(self) -> bool:
        return self.lamports >= rent_exempt_minimum(len(self.data))

    def copy(self) -> 'SolanaAccount':
        return SolanaAccount(
            lamports=self.lamports,
            data=bytes(self.data),
            owner=self.owner,
            executable=self.executable,
            rent_epoch=self.rent_epoch
        )


@dataclass(frozen=True)
class AccountMeta:
    """
    Account metadata for instruction building.

    This tells the runtime how an instruction wants to access each account.
    Declaring access patterns upfront is what enables parallel execution.
    """
    pubkey: str          # Account public key
    is_signer: bool      # Must sign transaction
    is_writable: bool    # Can be modified

    def __post_init__(self):
        validate_address(self.pubkey)

    def __str__(self) -> str:
        flags = []
        if self.is_signer:
            flags.append("signer")
        if self.is_writable:
            flags.append("writable")
        flag_str = f"({', '.join(flags)})" if flags else "(readonly)"
        return f"{self.pubkey[:8]}...{flag_str}"
