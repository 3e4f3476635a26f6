"""
Minter Error Taxonomy

Every failure the minter core can surface is one of these exceptions:
- InvalidParameter: bad decimals, amount or address, raised before any network call
- DerivationFailure: no off-curve program address exists for the given seeds
- SubmissionError: the ledger rejected the transaction
- ConfirmationTimeout: confirmation status still unknown after bounded polling
- NotFound: an expected account does not exist
- ParseError: account bytes do not match the expected schema
"""

from typing import Optional


class MinterError(Exception):
    """Base class for all minter failures."""


class InvalidParameter(MinterError, ValueError):
    """A caller-supplied parameter is out of range or malformed."""


class DerivationFailure(MinterError):
    """No bump seed in range produced a valid program address."""


class SubmissionError(MinterError):
    """The network rejected a transaction before or at inclusion."""

    def __init__(self, reason: str, signature: Optional[str] = None):
        self.reason = reason
        self.signature = signature
        super().__init__(f"Transaction rejected: {reason}")


class ConfirmationTimeout(MinterError):
    """
    Confirmation was not observed within the polling bound.

    This does NOT mean the transaction failed. Its status is unknown: re-query
    the ledger before deciding whether to submit again.
    """

    def __init__(self, signature: str, attempts: int):
        self.signature = signature
        self.attempts = attempts
        super().__init__(
            f"Transaction {signature} not confirmed after {attempts} status checks"
        )


class NotFound(MinterError):
    """An expected account is absent from the ledger."""

    def __init__(self, address: str, what: str = "Account"):
        self.address = address
        super().__init__(f"{what} {address} not found")


class ParseError(MinterError):
    """Account data does not match the expected layout."""

    def __init__(self, address: str, reason: str):
        self.address = address
        self.reason = reason
        super().__init__(f"Cannot parse account {address}: {reason}")
