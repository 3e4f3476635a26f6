"""
Solana Program Clients

Instruction encoders and account decoders for the programs a token creation
touches:
- System Program: account creation
- SPL Token Program: mint initialization, mint and token account layouts
- Associated Token Account Program: canonical holder accounts
- Program Derived Addresses (PDA): keyless authorities
- Minter program: mints supply under its PDA authority
"""

from .pda import (
    AuthorityDerivation,
    MINT_AUTHORITY_SEED,
    create_program_address,
    derive,
    derive_mint_authority,
    find_program_address,
)
from .system import SYSTEM_PROGRAM_ID
from .token import TOKEN_PROGRAM_ID, Mint, TokenAccount, AccountState
from .associated_token import ASSOCIATED_TOKEN_PROGRAM_ID, get_associated_token_address
from .minter import MINTER_PROGRAM_ID, MINTER_DEVNET_PROGRAM_ID, program_id_for_cluster

__all__ = [
    'AuthorityDerivation',
    'MINT_AUTHORITY_SEED',
    'create_program_address',
    'derive',
    'derive_mint_authority',
    'find_program_address',
    'SYSTEM_PROGRAM_ID',
    'TOKEN_PROGRAM_ID',
    'Mint',
    'TokenAccount',
    'AccountState',
    'ASSOCIATED_TOKEN_PROGRAM_ID',
    'get_associated_token_address',
    'MINTER_PROGRAM_ID',
    'MINTER_DEVNET_PROGRAM_ID',
    'program_id_for_cluster',
]
