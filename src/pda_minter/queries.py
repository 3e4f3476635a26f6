"""
Account Query Service

Read-side access to mints and token accounts. Every read is one fetch with
no caching: results reflect the ledger at fetch time, and two separate
queries carry no consistency guarantee between them.
"""

import logging

from .core.accounts import SolanaAccount
from .core.keys import validate_address
from .errors import NotFound, ParseError
from .networking.rpc import LedgerRpc
from .programs import associated_token, token
from .programs.token import Mint, TokenAccount

logger = logging.getLogger(__name__)


class AccountQueryService:
    """Fetches and decodes token program accounts."""

    def __init__(self, rpc: LedgerRpc):
        self.rpc = rpc

    async def _fetch(self, address: str, what: str) -> SolanaAccount:
        validate_address(address)
        account = await self.rpc.get_account_info(address)
        if account is None:
            raise NotFound(address, what)
        return account

    async def get_mint_state(self, address: str) -> Mint:
        """
        Raises:
            NotFound: no account at address
            ParseError: the account is not a token program mint
        """
        account = await self._fetch(address, "Mint")
        return token.decode_mint(address, account)

    async def get_token_account_state(self, address: str) -> TokenAccount:
        """
        Decode a token account; decimals are read from its mint.

        Raises:
            NotFound: no account at address (or its mint is gone)
            ParseError: the account or its mint does not match the token layouts
        """
        account = await self._fetch(address, "Token account")
        mint_address, owner, amount, state = token.decode_token_account_fields(address, account)
        mint = await self.get_mint_state(mint_address)
        return TokenAccount(
            address=address,
            mint=mint_address,
            owner=owner,
            amount=amount,
            decimals=mint.decimals,
            state=state,
            owning_program=account.owner,
        )

    async def get_balance(self, mint: str, owner: str) -> str:
        """
        Owner's balance of mint as a decimal string, e.g. "1000000" or "0.25".

        A wallet that never received the token has no associated account;
        that is a zero balance, not an error.
        """
        validate_address(mint)
        validate_address(owner)
        ata = associated_token.get_associated_token_address(owner, mint)

        account = await self.rpc.get_parsed_account_info(ata)
        if account is None:
            logger.debug("No associated account %s for %s; balance is 0", ata, owner)
            return "0"

        try:
            data = account["data"]
        except (KeyError, TypeError):
            raise ParseError(ata, "account has no data member")
        if not isinstance(data, dict):
            raise ParseError(ata, "account data is not parsed token state")

        parsed_mint, parsed_owner, ui_amount, _ = token.parse_token_amount(ata, data)
        if parsed_mint != mint or parsed_owner != owner:
            raise ParseError(ata, "associated account belongs to a different mint or owner")
        return ui_amount

    async def get_program_account(self, program_id: str) -> SolanaAccount:
        """Raw account of a deployed program; NotFound if it is not deployed."""
        account = await self._fetch(program_id, "Program")
        if not account.executable:
            raise ParseError(program_id, "account is not an executable program")
        return account
