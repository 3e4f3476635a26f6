"""End-to-end token creation against the in-memory ledger."""

from decimal import Decimal

import pytest

from pda_minter.core.keys import Keypair
from pda_minter.errors import InvalidParameter, SubmissionError
from pda_minter.holdings import HoldingsEnumerator
from pda_minter.minter import TokenMinter, to_base_units
from pda_minter.programs import associated_token
from pda_minter.programs.minter import MINTER_PROGRAM_ID
from pda_minter.programs.pda import MINT_AUTHORITY_SEED, derive
from pda_minter.programs.token import TOKEN_PROGRAM_ID
from pda_minter.queries import AccountQueryService

from tests.conftest import collect, run


def test_create_token_sets_supply_and_pda_authorities(ledger, payer, token_minter):
    initial = 1_000_000 * 10 ** 9
    result = run(token_minter.create_token(decimals=9, initial_amount=initial, payer=payer))

    mint = run(AccountQueryService(ledger).get_mint_state(result.mint))
    expected = derive(MINT_AUTHORITY_SEED, MINTER_PROGRAM_ID).derived_address
    assert mint.decimals == 9
    assert mint.supply == initial
    assert mint.mint_authority == expected
    assert mint.freeze_authority == expected
    assert mint.owning_program == TOKEN_PROGRAM_ID
    assert result.authority.derived_address == expected


def test_initial_supply_lands_in_payers_associated_account(ledger, payer, token_minter):
    result = run(token_minter.create_token(decimals=9, initial_amount=10 ** 15, payer=payer))
    queries = AccountQueryService(ledger)

    holder = run(queries.get_token_account_state(result.destination_token_account))
    assert holder.owner == payer.pubkey
    assert holder.mint == result.mint
    assert holder.amount == 10 ** 15
    assert holder.decimals == 9
    assert result.destination_token_account == \
        associated_token.get_associated_token_address(payer.pubkey, result.mint)
    assert run(queries.get_balance(result.mint, payer.pubkey)) == "1000000"


def test_mint_to_another_owner(ledger, payer, token_minter):
    recipient = Keypair.generate().pubkey
    result = run(token_minter.create_token(decimals=2, initial_amount=250, payer=payer,
                                           destination_owner=recipient))
    queries = AccountQueryService(ledger)
    assert run(queries.get_balance(result.mint, recipient)) == "2.5"
    assert run(queries.get_balance(result.mint, payer.pubkey)) == "0"


def test_balance_for_wallet_that_never_received_the_token(ledger, payer, token_minter):
    result = run(token_minter.create_token(decimals=6, initial_amount=1, payer=payer))
    stranger = Keypair.generate().pubkey
    assert run(AccountQueryService(ledger).get_balance(result.mint, stranger)) == "0"


def test_each_creation_gets_a_fresh_mint(ledger, payer, token_minter):
    first = run(token_minter.create_token(decimals=0, initial_amount=1, payer=payer))
    second = run(token_minter.create_token(decimals=0, initial_amount=1, payer=payer))
    assert first.mint != second.mint
    assert first.authority == second.authority
    assert not any(isinstance(v, Keypair) for v in vars(token_minter).values())


def test_holdings_list_every_created_mint(ledger, payer, token_minter):
    amounts = {3: 7_000, 6: 1_250_000, 9: 42 * 10 ** 9}
    created = {}
    for decimals, amount in amounts.items():
        result = run(token_minter.create_token(decimals=decimals, initial_amount=amount, payer=payer))
        created[result.mint] = (decimals, amount)

    holdings = run(collect(HoldingsEnumerator(ledger).list_holdings(payer.pubkey)))
    assert len(holdings) == len(amounts)
    for holding in holdings:
        decimals, amount = created[holding.mint]
        assert holding.decimals == decimals
        assert Decimal(holding.balance) == Decimal(amount).scaleb(-decimals)


def test_resubmitting_a_confirmed_transaction_does_not_mint_twice(ledger, payer, submitter):
    mint_keypair = Keypair.generate()
    composed = TokenMinter(ledger).composer.compose(
        decimals=9, initial_amount=500, payer=payer.pubkey,
        new_mint=mint_keypair.pubkey, destination_owner=payer.pubkey)
    tx = run(submitter.build(composed.instructions, payer, mint_keypair))
    run(submitter.confirm(run(submitter.send(tx))))

    # same bytes again: a replay
    with pytest.raises(SubmissionError, match="already been processed"):
        run(submitter.send(tx))

    # same instructions under a new blockhash: the mint account already exists
    with pytest.raises(SubmissionError, match="already in use"):
        run(submitter.submit(composed.instructions, payer, mint_keypair))

    mint = run(AccountQueryService(ledger).get_mint_state(composed.mint))
    assert mint.supply == 500


def test_failed_creation_leaves_nothing_behind(ledger, token_minter):
    poor = Keypair.generate()
    ledger.fund(poor.pubkey, 1_000_000)
    before = ledger.balance_of(poor.pubkey)

    with pytest.raises(SubmissionError):
        run(token_minter.create_token(decimals=9, initial_amount=1, payer=poor))

    assert ledger.balance_of(poor.pubkey) == before
    assert run(collect(HoldingsEnumerator(ledger).list_holdings(poor.pubkey))) == []


def test_wrong_program_is_rejected_atomically(ledger, payer):
    other_program = Keypair.generate().pubkey
    token_minter = TokenMinter(ledger, program_id=other_program)
    with pytest.raises(SubmissionError, match="unknown program"):
        run(token_minter.create_token(decimals=9, initial_amount=1, payer=payer))
    assert len(ledger.accounts.get_accounts_by_owner(TOKEN_PROGRAM_ID)) == 0


@pytest.mark.parametrize("ui_amount, decimals, expected", [
    ("1000000", 9, 1_000_000 * 10 ** 9),
    ("1.5", 6, 1_500_000),
    ("0.01", 2, 1),
    (Decimal("7"), 0, 7),
    (3, 1, 30),
])
def test_to_base_units(ui_amount, decimals, expected):
    assert to_base_units(ui_amount, decimals) == expected


@pytest.mark.parametrize("ui_amount, decimals", [
    ("0.001", 2),
    ("0", 9),
    ("-1", 9),
    ("abc", 9),
    ("NaN", 9),
    (1.5, 6),
    ("1", 10),
])
def test_to_base_units_rejects(ui_amount, decimals):
    with pytest.raises(InvalidParameter):
        to_base_units(ui_amount, decimals)
