"""
Ledger Networking

The asynchronous RPC surface the minter uses to read and write the ledger.
"""

from .rpc import LedgerRpc, HttpLedgerRpc, RpcError

__all__ = [
    'LedgerRpc',
    'HttpLedgerRpc',
    'RpcError',
]
