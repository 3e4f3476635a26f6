"""
Minter program client

The minter program mints supply of a mint whose authority is its own PDA
(seed "mint_authority"). Its instruction is consumed as a fixed contract:

    create_token(decimals: u8, amount: u64)

over accounts [mint, pda_authority, destination_token_account, user,
system_program, token_program, associated_token_program]. Arguments use the
Anchor encoding: an 8-byte discriminator, sha256("global:create_token")[:8],
followed by the little-endian fields.
"""

import hashlib
import struct
from typing import Tuple

from ..core.accounts import AccountMeta
from ..core.transactions import Instruction
from .associated_token import ASSOCIATED_TOKEN_PROGRAM_ID
from .system import SYSTEM_PROGRAM_ID
from .token import TOKEN_PROGRAM_ID

# Program id declared by the deployed program
MINTER_PROGRAM_ID = "FqzkXZdwYjurnUKetJCAvaUw5WAqbwzU6gZEwydeEfqS"

# Deployment on devnet and testnet
MINTER_DEVNET_PROGRAM_ID = "coUnmi3oBUtwtd9fjeAvSsJssXh5A5xyPbhpewyzRVF"


def anchor_discriminator(name: str) -> bytes:
    return hashlib.sha256(f"global:{name}".encode()).digest()[:8]


CREATE_TOKEN_DISCRIMINATOR = anchor_discriminator("create_token")


def program_id_for_cluster(cluster: str) -> str:
    if cluster in ("devnet", "testnet"):
        return MINTER_DEVNET_PROGRAM_ID
    return MINTER_PROGRAM_ID


def create_token(program_id: str, mint: str, pda_authority: str,
                 destination_token_account: str, user: str,
                 decimals: int, amount: int) -> Instruction:
    """
    Invoke create_token.

    pda_authority is passed read-only and unsigned: the program signs for it
    with its own seeds during the mint_to CPI.
    """
    data = CREATE_TOKEN_DISCRIMINATOR + struct.pack("<BQ", decimals, amount)
    return Instruction(
        program_id=program_id,
        accounts=(
            AccountMeta(mint, is_signer=True, is_writable=True),
            AccountMeta(pda_authority, is_signer=False, is_writable=False),
            AccountMeta(destination_token_account, is_signer=False, is_writable=True),
            AccountMeta(user, is_signer=True, is_writable=True),
            AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        ),
        data=data,
    )


def decode_create_token(data: bytes) -> Tuple[int, int]:
    """Return (decimals, amount) from create_token instruction data."""
    if len(data) != 17 or data[:8] != CREATE_TOKEN_DISCRIMINATOR:
        raise ValueError("Not a create_token instruction")
    return struct.unpack("<BQ", data[8:])
