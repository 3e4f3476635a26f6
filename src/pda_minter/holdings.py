"""
Holdings Enumerator

Lists every token account an address owns under the SPL Token program.
Entries are yielded lazily in whatever order the ledger index returns them.
"""

from dataclasses import dataclass
from typing import AsyncIterator

from .core.keys import validate_address
from .errors import ParseError
from .networking.rpc import LedgerRpc
from .programs.token import TOKEN_PROGRAM_ID, parse_token_amount


@dataclass(frozen=True)
class Holding:
    mint: str
    token_account_address: str
    balance: str
    decimals: int


class HoldingsEnumerator:

    def __init__(self, rpc: LedgerRpc, token_program_id: str = TOKEN_PROGRAM_ID):
        self.rpc = rpc
        self.token_program_id = token_program_id

    async def list_holdings(self, owner: str) -> AsyncIterator[Holding]:
        """
        Yield one Holding per token account of owner.

        The generator is one-shot: iterate a fresh call to re-query the ledger.
        """
        validate_address(owner)
        entries = await self.rpc.get_token_accounts_by_owner(owner, self.token_program_id)

        for entry in entries:
            try:
                address = entry["pubkey"]
                data = entry["account"]["data"]
            except (KeyError, TypeError):
                where = entry.get("pubkey", "<unknown>") if isinstance(entry, dict) else "<unknown>"
                raise ParseError(str(where), "unexpected token account entry shape")
            if not isinstance(data, dict):
                raise ParseError(address, "account data is not parsed token state")

            mint, parsed_owner, balance, decimals = parse_token_amount(address, data)
            if parsed_owner != owner:
                raise ParseError(address, f"listed for {owner} but owned by {parsed_owner}")
            yield Holding(
                mint=mint,
                token_account_address=address,
                balance=balance,
                decimals=decimals,
            )
