"""
Associated Token Account (ATA) Program

Each (owner, mint) pair has one canonical token account whose address is a
PDA of the ATA program with seeds [owner, token_program, mint]. Wallets never
need to remember it; it can always be recomputed.
"""

from ..core.accounts import AccountMeta
from ..core.keys import address_to_bytes
from ..core.transactions import Instruction
from .pda import find_program_address
from .system import SYSTEM_PROGRAM_ID
from .token import TOKEN_PROGRAM_ID

ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"

CREATE = 0
CREATE_IDEMPOTENT = 1


def get_associated_token_address(owner: str, mint: str,
                                 token_program_id: str = TOKEN_PROGRAM_ID) -> str:
    address, _ = find_program_address(
        [address_to_bytes(owner), address_to_bytes(token_program_id), address_to_bytes(mint)],
        ASSOCIATED_TOKEN_PROGRAM_ID,
    )
    return address


def create_associated_token_account_idempotent(
        payer: str, owner: str, mint: str,
        token_program_id: str = TOKEN_PROGRAM_ID) -> Instruction:
    """Create the owner's ATA for mint, succeeding as a no-op if it already exists."""
    ata = get_associated_token_address(owner, mint, token_program_id)
    return Instruction(
        program_id=ASSOCIATED_TOKEN_PROGRAM_ID,
        accounts=(
            AccountMeta(payer, is_signer=True, is_writable=True),
            AccountMeta(ata, is_signer=False, is_writable=True),
            AccountMeta(owner, is_signer=False, is_writable=False),
            AccountMeta(mint, is_signer=False, is_writable=False),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(token_program_id, is_signer=False, is_writable=False),
        ),
        data=bytes([CREATE_IDEMPOTENT]),
    )
