"""Shared fixtures for the minter test suite."""

import asyncio

import pytest

from pda_minter.core.accounts import LAMPORTS_PER_SOL
from pda_minter.core.keys import Keypair
from pda_minter.minter import TokenMinter
from pda_minter.submitter import Submitter

from tests.ledger_double import InMemoryLedger


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


async def collect(async_iterable):
    return [item async for item in async_iterable]


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def payer(ledger):
    keypair = Keypair.from_seed(bytes(range(32)))
    ledger.fund(keypair.pubkey, 10 * LAMPORTS_PER_SOL)
    return keypair


@pytest.fixture
def submitter(ledger):
    return Submitter(ledger, max_attempts=5, poll_interval=0)


@pytest.fixture
def token_minter(ledger, submitter):
    return TokenMinter(ledger, submitter=submitter)


@pytest.fixture
def fresh_address():
    return lambda: Keypair.generate().pubkey
