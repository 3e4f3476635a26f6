"""
Ledger Core Types

Keys, accounts and transactions in the ledger's own formats.
"""

from .keys import Keypair, address_to_bytes, bytes_to_address, is_on_curve, validate_address
from .accounts import SolanaAccount, AccountMeta, rent_exempt_minimum, LAMPORTS_PER_SOL
from .transactions import (
    SolanaTransaction,
    TransactionMessage,
    MessageHeader,
    CompiledInstruction,
    Instruction,
    TransactionBuilder,
    sign_transaction,
)

__all__ = [
    'Keypair', 'address_to_bytes', 'bytes_to_address', 'is_on_curve', 'validate_address',
    'SolanaAccount', 'AccountMeta', 'rent_exempt_minimum', 'LAMPORTS_PER_SOL',
    'SolanaTransaction', 'TransactionMessage', 'MessageHeader',
    'CompiledInstruction', 'Instruction', 'TransactionBuilder', 'sign_transaction',
]
