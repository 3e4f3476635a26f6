#!/usr/bin/env python3
"""
PDA Minter CLI

A command-line interface for creating tokens whose mint authority is a
program-derived address, and for inspecting balances and holdings.

Usage:
    pda-minter create-token --decimals 9 --amount 1000000   # Create and mint
    pda-minter balance <mint> [--owner <address>]           # One token balance
    pda-minter holdings <owner>                             # All token accounts
    pda-minter mint-info <mint>                             # Decoded mint state
    pda-minter derive-authority                             # Program's PDA authority
    pda-minter program-info                                 # Deployment check
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .config import CLUSTER_URLS, MinterConfig
from .core.keys import Keypair
from .errors import ConfirmationTimeout, MinterError
from .holdings import HoldingsEnumerator
from .minter import TokenMinter, to_base_units
from .networking.rpc import HttpLedgerRpc, LedgerRpc, RpcError
from .programs.pda import derive_mint_authority
from .programs.token import format_ui_amount
from .queries import AccountQueryService
from .submitter import Submitter


class MinterCLI:
    """
    Command handlers.

    Each handler opens its own RPC client; the rpc argument exists so a
    prepared client can be injected instead.
    """

    def __init__(self, config: MinterConfig, rpc: Optional[LedgerRpc] = None):
        self.config = config
        self._rpc = rpc

    def open_rpc(self) -> LedgerRpc:
        if self._rpc is not None:
            return self._rpc
        return HttpLedgerRpc(self.config.rpc_url, commitment=self.config.commitment,
                             timeout=self.config.request_timeout)

    async def _close(self, rpc: LedgerRpc) -> None:
        if rpc is not self._rpc and isinstance(rpc, HttpLedgerRpc):
            await rpc.aclose()

    def load_payer(self) -> Keypair:
        return Keypair.from_json_file(self.config.keypair_path)

    async def create_token(self, decimals: int, amount: str, owner: Optional[str] = None):
        """Create a PDA-controlled token and mint `amount` (human units) to owner."""
        base_units = to_base_units(amount, decimals)
        payer = self.load_payer()

        print(f"🪙  Creating token with {decimals} decimals, initial supply {amount}")
        print(f"   Payer:   {payer.pubkey}")
        print(f"   Program: {self.config.program_id}")

        rpc = self.open_rpc()
        try:
            submitter = Submitter(rpc, commitment=self.config.commitment,
                                  max_attempts=self.config.confirm_attempts,
                                  poll_interval=self.config.poll_interval)
            minter = TokenMinter(rpc, program_id=self.config.program_id, submitter=submitter)
            try:
                result = await minter.create_token(decimals, base_units, payer, owner)
            except ConfirmationTimeout as e:
                print(f"⏰ Not confirmed yet: {e.signature}")
                print("   Check the mint before retrying; the transaction may still land.")
                raise
        finally:
            await self._close(rpc)

        print(f"✅ Token created! Signature: {result.signature}")
        print(f"   Mint Address:      {result.mint}")
        print(f"   Mint Authority:    {result.authority.derived_address} (bump {result.authority.bump_seed})")
        print(f"   Recipient Account: {result.destination_token_account}")
        print(f"   Amount Minted:     {format_ui_amount(base_units, decimals)}")
        return result

    async def balance(self, mint: str, owner: Optional[str] = None) -> str:
        owner = owner or self.load_payer().pubkey
        rpc = self.open_rpc()
        try:
            balance = await AccountQueryService(rpc).get_balance(mint, owner)
        finally:
            await self._close(rpc)

        print(f"💰 Balance for {owner}:")
        print(f"   Mint:    {mint}")
        print(f"   Balance: {balance}")
        return balance

    async def holdings(self, owner: str) -> int:
        rpc = self.open_rpc()
        count = 0
        try:
            print(f"📋 Token accounts of {owner}:")
            async for holding in HoldingsEnumerator(rpc).list_holdings(owner):
                count += 1
                print(f"   {holding.mint}  {holding.balance:>24}  "
                      f"(decimals {holding.decimals}, account {holding.token_account_address})")
        finally:
            await self._close(rpc)

        if count == 0:
            print("   No token accounts found")
        return count

    async def mint_info(self, mint: str):
        rpc = self.open_rpc()
        try:
            state = await AccountQueryService(rpc).get_mint_state(mint)
        finally:
            await self._close(rpc)

        expected = derive_mint_authority(self.config.program_id).derived_address
        print(f"🔍 Mint {state.address}")
        print(f"   Decimals:         {state.decimals}")
        print(f"   Supply:           {format_ui_amount(state.supply, state.decimals)} ({state.supply:,} base units)")
        print(f"   Mint Authority:   {state.mint_authority}")
        print(f"   Freeze Authority: {state.freeze_authority}")
        if state.mint_authority == expected:
            print("   ✔ Controlled by the minter program's PDA")
        return state

    async def program_info(self):
        """Show whether the minter program is deployed on the configured cluster."""
        rpc = self.open_rpc()
        try:
            account = await AccountQueryService(rpc).get_program_account(self.config.program_id)
        finally:
            await self._close(rpc)

        authority = derive_mint_authority(self.config.program_id)
        print(f"📦 Program {self.config.program_id} is deployed on {self.config.cluster}")
        print(f"   Owner:          {account.owner}")
        print(f"   Balance:        {account.sol_balance:.9f} SOL")
        print(f"   Mint Authority: {authority.derived_address} (bump {authority.bump_seed})")
        return account

    def derive_authority(self):
        authority = derive_mint_authority(self.config.program_id)
        print(f"🔑 PDA authority for program {authority.owning_program}")
        print(f"   Seed:    {authority.seed.decode()}")
        print(f"   Address: {authority.derived_address}")
        print(f"   Bump:    {authority.bump_seed}")
        return authority


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pda-minter",
        description="Create PDA-controlled SPL tokens and inspect holdings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pda-minter create-token --decimals 9 --amount 1000000   # Mint 1M tokens to yourself
  pda-minter balance <MINT>                               # Your balance of MINT
  pda-minter holdings <OWNER>                             # Every token OWNER holds
  pda-minter --cluster localnet derive-authority          # Show the mint authority PDA
        """
    )
    parser.add_argument('--cluster', choices=sorted(CLUSTER_URLS), help='Cluster to use (env MINTER_CLUSTER)')
    parser.add_argument('--url', dest='rpc_url', help='RPC endpoint, overrides the cluster URL')
    parser.add_argument('--keypair', dest='keypair_path', help='Payer keypair JSON file')
    parser.add_argument('--program-id', help='Minter program id')
    parser.add_argument('--commitment', choices=['processed', 'confirmed', 'finalized'])
    parser.add_argument('-v', '--verbose', action='store_true', help='Log RPC traffic')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    create_parser = subparsers.add_parser('create-token', help='Create a token and mint its initial supply')
    create_parser.add_argument('--decimals', type=int, default=9, help='Token decimals (0-9)')
    create_parser.add_argument('--amount', required=True, help='Initial supply in whole tokens')
    create_parser.add_argument('--owner', help='Recipient wallet (defaults to the payer)')

    balance_parser = subparsers.add_parser('balance', help='Show a token balance')
    balance_parser.add_argument('mint', help='Mint address')
    balance_parser.add_argument('--owner', help='Wallet address (defaults to the payer)')

    holdings_parser = subparsers.add_parser('holdings', help='List all token accounts of an owner')
    holdings_parser.add_argument('owner', help='Wallet address')

    mint_parser = subparsers.add_parser('mint-info', help='Show decoded mint state')
    mint_parser.add_argument('mint', help='Mint address')

    subparsers.add_parser('program-info', help="Check that the minter program is deployed")

    subparsers.add_parser('derive-authority', help="Show the program's mint authority PDA")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = MinterConfig.load(
            cluster=args.cluster,
            rpc_url=args.rpc_url,
            keypair_path=args.keypair_path,
            program_id=args.program_id,
            commitment=args.commitment,
        )
        cli = MinterCLI(config)

        if args.command == 'create-token':
            asyncio.run(cli.create_token(args.decimals, args.amount, args.owner))

        elif args.command == 'balance':
            asyncio.run(cli.balance(args.mint, args.owner))

        elif args.command == 'holdings':
            asyncio.run(cli.holdings(args.owner))

        elif args.command == 'mint-info':
            asyncio.run(cli.mint_info(args.mint))

        elif args.command == 'program-info':
            asyncio.run(cli.program_info())

        elif args.command == 'derive-authority':
            cli.derive_authority()

    except KeyboardInterrupt:
        print("\n👋 Goodbye!")
        sys.exit(0)

    except (MinterError, RpcError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
