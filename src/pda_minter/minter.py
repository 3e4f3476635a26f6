"""
Token Minter

End-to-end token creation: a fresh mint keypair is generated for the call,
used to sign the single creation transaction, and dropped when the call
returns or raises. It is never stored or reused.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from .composer import TransactionComposer, validate_creation_parameters
from .core.keys import Keypair, validate_address
from .errors import InvalidParameter
from .networking.rpc import LedgerRpc
from .programs import token
from .programs.pda import AuthorityDerivation
from .submitter import Submitter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreationResult:
    signature: str
    mint: str
    authority: AuthorityDerivation
    destination_token_account: str
    decimals: int
    initial_amount: int


def to_base_units(ui_amount: Union[str, int, Decimal], decimals: int) -> int:
    """
    Convert a human-readable amount to base units (amount * 10^decimals).

    "1.5" with 6 decimals -> 1_500_000. Amounts with more fractional digits
    than decimals, or that are not positive, are rejected.
    """
    if isinstance(ui_amount, float):
        raise InvalidParameter("Pass amounts as strings or Decimals, not floats")
    if isinstance(decimals, bool) or not isinstance(decimals, int) \
            or not 0 <= decimals <= token.MAX_DECIMALS:
        raise InvalidParameter(f"Decimals must be between 0 and {token.MAX_DECIMALS}, got {decimals!r}")
    try:
        value = Decimal(str(ui_amount).strip())
    except InvalidOperation:
        raise InvalidParameter(f"Not a number: {ui_amount!r}")
    if not value.is_finite() or value <= 0:
        raise InvalidParameter(f"Amount must be a positive number, got {ui_amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise InvalidParameter(f"{ui_amount} has more than {decimals} decimal places")
    return int(scaled)


class TokenMinter:
    """Creates PDA-controlled tokens through one minter program."""

    def __init__(self, rpc: LedgerRpc, program_id: Optional[str] = None,
                 submitter: Optional[Submitter] = None):
        self.rpc = rpc
        self.composer = TransactionComposer(program_id) if program_id else TransactionComposer()
        self.submitter = submitter or Submitter(rpc)

    @property
    def program_id(self) -> str:
        return self.composer.program_id

    async def create_token(self, decimals: int, initial_amount: int, payer: Keypair,
                           destination_owner: Optional[str] = None) -> CreationResult:
        """
        Create a mint controlled by the program's PDA and mint initial_amount
        base units to destination_owner's associated account (the payer's by
        default).

        Raises:
            InvalidParameter: before any network call
            SubmissionError, ConfirmationTimeout: from the Submitter
        """
        validate_creation_parameters(decimals, initial_amount)
        if destination_owner is None:
            destination_owner = payer.pubkey
        validate_address(destination_owner)

        mint_keypair = Keypair.generate()
        rent = await self.rpc.get_minimum_balance_for_rent_exemption(token.MINT_SIZE)
        composed = self.composer.compose(
            decimals=decimals,
            initial_amount=initial_amount,
            payer=payer.pubkey,
            new_mint=mint_keypair.pubkey,
            destination_owner=destination_owner,
            rent_lamports=rent,
        )
        logger.info("Creating mint %s with authority %s (bump %d)", composed.mint,
                    composed.authority.derived_address, composed.authority.bump_seed)

        signature = await self.submitter.submit(composed.instructions, payer, mint_keypair)
        return CreationResult(
            signature=signature,
            mint=composed.mint,
            authority=composed.authority,
            destination_token_account=composed.destination_token_account,
            decimals=decimals,
            initial_amount=initial_amount,
        )
