"""
PDA Minter

Create SPL tokens whose mint and freeze authority is a program-derived
address, so no private key can ever mint or freeze them; only the minter
program can, by invocation. Creation, initialization and the initial mint
happen in one atomic transaction.

Key Features:
- ✅ Deterministic PDA authority derivation (recomputable by any client)
- ✅ Single-transaction create + initialize + ATA + mint
- ✅ Bounded confirmation with explicit timeout semantics
- ✅ Strict, schema-checked decoding of mint and token accounts
- ✅ Balance lookups and full holdings enumeration
- ✅ Command-line interface
"""

__version__ = "0.1.0"

from .errors import (
    MinterError,
    InvalidParameter,
    DerivationFailure,
    SubmissionError,
    ConfirmationTimeout,
    NotFound,
    ParseError,
)
from .core import Keypair
from .programs import AuthorityDerivation, Mint, TokenAccount, derive, derive_mint_authority
from .composer import TransactionComposer, ComposedCreation
from .submitter import Submitter
from .queries import AccountQueryService
from .holdings import HoldingsEnumerator, Holding
from .minter import TokenMinter, CreationResult, to_base_units
from .networking import LedgerRpc, HttpLedgerRpc, RpcError
from .config import MinterConfig

__all__ = [
    # Errors
    'MinterError',
    'InvalidParameter',
    'DerivationFailure',
    'SubmissionError',
    'ConfirmationTimeout',
    'NotFound',
    'ParseError',

    # Core components
    'Keypair',
    'AuthorityDerivation',
    'Mint',
    'TokenAccount',
    'derive',
    'derive_mint_authority',
    'TransactionComposer',
    'ComposedCreation',
    'Submitter',
    'AccountQueryService',
    'HoldingsEnumerator',
    'Holding',
    'TokenMinter',
    'CreationResult',
    'to_base_units',

    # Network and configuration
    'LedgerRpc',
    'HttpLedgerRpc',
    'RpcError',
    'MinterConfig',
]
