"""
Token Creation Composer

Assembles the instructions that create a PDA-controlled token and mint its
initial supply. The four instructions depend on each other in order:

1. System CreateAccount       -> the mint account exists, owned by the token program
2. Token InitializeMint2      -> decimals set, mint and freeze authority = PDA
3. ATA CreateIdempotent       -> the destination holder account exists
4. Minter create_token        -> supply minted into the holder account

They are returned as one unit so they always land in one transaction: the
ledger then applies all of them or none, and an account that was created but
never minted cannot be observed.

Composition is pure. Parameters are validated before anything else happens,
and no network call is made here.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from .core.accounts import rent_exempt_minimum
from .core.keys import validate_address
from .core.transactions import Instruction
from .errors import InvalidParameter
from .programs import associated_token, minter, system, token
from .programs.pda import AuthorityDerivation, derive_mint_authority


@dataclass(frozen=True)
class ComposedCreation:
    """The ordered, indivisible instruction set for one token creation."""
    instructions: Tuple[Instruction, ...]
    mint: str
    payer: str
    authority: AuthorityDerivation
    destination_owner: str
    destination_token_account: str
    decimals: int
    initial_amount: int


def validate_creation_parameters(decimals: int, initial_amount: int) -> None:
    """Raise InvalidParameter unless decimals is 0..9 and amount fits a positive u64."""
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise InvalidParameter(f"Decimals must be an integer, got {decimals!r}")
    if not 0 <= decimals <= token.MAX_DECIMALS:
        raise InvalidParameter(f"Decimals must be between 0 and {token.MAX_DECIMALS}, got {decimals}")
    if isinstance(initial_amount, bool) or not isinstance(initial_amount, int):
        raise InvalidParameter(f"Initial amount must be an integer, got {initial_amount!r}")
    if initial_amount <= 0:
        raise InvalidParameter("Initial mint amount must be greater than zero")
    if initial_amount > token.U64_MAX:
        raise InvalidParameter(f"Initial amount {initial_amount} exceeds the u64 range")


class TransactionComposer:
    """Builds creation instruction sets for one minter program."""

    def __init__(self, program_id: str = minter.MINTER_PROGRAM_ID):
        self.program_id = validate_address(program_id)

    def compose(self, decimals: int, initial_amount: int, payer: str,
                new_mint: str, destination_owner: str,
                rent_lamports: Optional[int] = None) -> ComposedCreation:
        """
        Compose create + initialize + ensure-ATA + mint.

        Args:
            decimals: Token decimals, 0..9
            initial_amount: Supply to mint, in base units
            payer: Fee payer and funder of the new accounts
            new_mint: Address of the freshly generated mint keypair
            destination_owner: Wallet that receives the initial supply
            rent_lamports: Rent for the mint account; computed from the default
                rent parameters when omitted

        Raises:
            InvalidParameter: before any instruction is built
        """
        validate_creation_parameters(decimals, initial_amount)
        for address in (payer, new_mint, destination_owner):
            validate_address(address)
        if new_mint in (payer, destination_owner):
            raise InvalidParameter("The new mint must be a fresh address")
        if rent_lamports is None:
            rent_lamports = rent_exempt_minimum(token.MINT_SIZE)
        elif rent_lamports < 0:
            raise InvalidParameter(f"Rent lamports cannot be negative, got {rent_lamports}")

        authority = derive_mint_authority(self.program_id)
        pda = authority.derived_address
        destination = associated_token.get_associated_token_address(destination_owner, new_mint)

        instructions = (
            system.create_account(
                payer=payer,
                new_account=new_mint,
                lamports=rent_lamports,
                space=token.MINT_SIZE,
                owner=token.TOKEN_PROGRAM_ID,
            ),
            token.initialize_mint2(
                mint=new_mint,
                decimals=decimals,
                mint_authority=pda,
                freeze_authority=pda,
            ),
            associated_token.create_associated_token_account_idempotent(
                payer=payer,
                owner=destination_owner,
                mint=new_mint,
            ),
            minter.create_token(
                program_id=self.program_id,
                mint=new_mint,
                pda_authority=pda,
                destination_token_account=destination,
                user=payer,
                decimals=decimals,
                amount=initial_amount,
            ),
        )

        return ComposedCreation(
            instructions=instructions,
            mint=new_mint,
            payer=payer,
            authority=authority,
            destination_owner=destination_owner,
            destination_token_account=destination,
            decimals=decimals,
            initial_amount=initial_amount,
        )
