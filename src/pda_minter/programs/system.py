"""
System Program instructions

The System Program owns every fresh account. CreateAccount funds a new
address from a payer, allocates its data and hands ownership to another
program in one step. Both the payer and the new account must sign.
"""

import struct

from ..core.accounts import AccountMeta
from ..core.keys import address_to_bytes
from ..core.transactions import Instruction

SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"

CREATE_ACCOUNT = 0


def create_account(payer: str, new_account: str, lamports: int,
                   space: int, owner: str) -> Instruction:
    """Create an account instruction (u32 tag, u64 lamports, u64 space, owner)."""
    data = struct.pack("<IQQ", CREATE_ACCOUNT, lamports, space) + address_to_bytes(owner)
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta(payer, is_signer=True, is_writable=True),
            AccountMeta(new_account, is_signer=True, is_writable=True),
        ),
        data=data,
    )
