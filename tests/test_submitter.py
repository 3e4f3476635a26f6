"""Unit tests for signing, sending and confirming."""

from unittest.mock import patch

import pytest

from pda_minter.composer import TransactionComposer
from pda_minter.core.keys import Keypair
from pda_minter.errors import ConfirmationTimeout, InvalidParameter, SubmissionError
from pda_minter.networking.rpc import RpcError
from pda_minter.submitter import Submitter

from tests.conftest import run
from tests.ledger_double import InMemoryLedger


def compose_for(payer, mint, amount=1_000):
    return TransactionComposer().compose(
        decimals=3, initial_amount=amount, payer=payer.pubkey,
        new_mint=mint.pubkey, destination_owner=payer.pubkey,
    ).instructions


def test_submit_returns_confirmed_signature(ledger, payer, submitter):
    mint = Keypair.generate()
    signature = run(submitter.submit(compose_for(payer, mint), payer, mint))

    assert ledger.calls["sendTransaction"] == 1
    status = run(ledger.get_signature_statuses([signature]))[0]
    assert status["confirmationStatus"] == "confirmed"


def test_all_instructions_go_out_in_one_transaction(ledger, payer, submitter):
    mint = Keypair.generate()
    tx = run(submitter.build(compose_for(payer, mint), payer, mint))
    assert len(tx.message.instructions) == 4
    assert tx.message.signer_keys == [payer.pubkey, mint.pubkey]
    assert tx.verify_signatures()


def test_polls_until_confirmed(payer):
    ledger = InMemoryLedger(confirm_after=3)
    ledger.fund(payer.pubkey, 10 ** 10)
    submitter = Submitter(ledger, max_attempts=5, poll_interval=0)
    mint = Keypair.generate()

    run(submitter.submit(compose_for(payer, mint), payer, mint))
    assert ledger.calls["getSignatureStatuses"] == 4


def test_timeout_when_status_stays_unknown(payer):
    ledger = InMemoryLedger(never_confirm=True)
    ledger.fund(payer.pubkey, 10 ** 10)
    submitter = Submitter(ledger, max_attempts=4, poll_interval=0)
    mint = Keypair.generate()

    with pytest.raises(ConfirmationTimeout) as excinfo:
        run(submitter.submit(compose_for(payer, mint), payer, mint))

    assert excinfo.value.attempts == 4
    assert ledger.calls["getSignatureStatuses"] == 4
    # the transaction did land: a timeout means unknown, not failed
    assert ledger.accounts.get_account(mint.pubkey) is not None


def test_backoff_is_bounded(payer):
    ledger = InMemoryLedger(never_confirm=True)
    ledger.fund(payer.pubkey, 10 ** 10)
    submitter = Submitter(ledger, max_attempts=5, poll_interval=1.0, backoff=2.0, max_interval=3.0)
    mint = Keypair.generate()

    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    with patch("pda_minter.submitter.asyncio.sleep", fake_sleep):
        with pytest.raises(ConfirmationTimeout):
            run(submitter.submit(compose_for(payer, mint), payer, mint))

    assert delays == [1.0, 2.0, 3.0, 3.0]


def test_rejection_becomes_submission_error(ledger, submitter):
    broke = Keypair.generate()
    ledger.fund(broke.pubkey, 20_000)
    mint = Keypair.generate()

    with pytest.raises(SubmissionError) as excinfo:
        run(submitter.submit(compose_for(broke, mint), broke, mint))

    assert "insufficient lamports" in excinfo.value.reason
    assert ledger.accounts.get_account(mint.pubkey) is None
    assert ledger.calls["getSignatureStatuses"] == 0


def test_landed_with_error_is_a_submission_error(payer):
    class FailingStatusLedger(InMemoryLedger):
        async def get_signature_statuses(self, signatures):
            return [{"slot": 1, "confirmations": 0, "err": {"InstructionError": [3, "Custom"]},
                     "confirmationStatus": "confirmed"}]

    ledger = FailingStatusLedger()
    ledger.fund(payer.pubkey, 10 ** 10)
    mint = Keypair.generate()
    with pytest.raises(SubmissionError, match="InstructionError"):
        run(Submitter(ledger, poll_interval=0).submit(compose_for(payer, mint), payer, mint))


def test_commitment_levels(payer):
    ledger = InMemoryLedger(never_confirm=False)
    ledger.fund(payer.pubkey, 10 ** 10)
    mint = Keypair.generate()
    # the double reports "confirmed", which never satisfies "finalized"
    submitter = Submitter(ledger, commitment="finalized", max_attempts=2, poll_interval=0)
    with pytest.raises(ConfirmationTimeout):
        run(submitter.submit(compose_for(payer, mint), payer, mint))


def test_only_payer_and_mint_may_sign(ledger, payer, submitter):
    mint = Keypair.generate()
    instructions = TransactionComposer().compose(
        decimals=0, initial_amount=1, payer=Keypair.generate().pubkey,
        new_mint=mint.pubkey, destination_owner=payer.pubkey).instructions
    with pytest.raises(InvalidParameter):
        run(submitter.submit(instructions, payer, mint))
    assert ledger.calls["sendTransaction"] == 0


def test_submitter_settings_validated(ledger):
    with pytest.raises(InvalidParameter):
        Submitter(ledger, commitment="eventually")
    with pytest.raises(InvalidParameter):
        Submitter(ledger, max_attempts=0)


def test_rpc_error_keeps_signature(payer, submitter, ledger):
    mint = Keypair.generate()

    async def refuse(wire):
        raise RpcError("node is behind", -32005)

    ledger.send_transaction = refuse
    with pytest.raises(SubmissionError) as excinfo:
        run(submitter.submit(compose_for(payer, mint), payer, mint))
    assert excinfo.value.signature is not None
    assert "node is behind" in excinfo.value.reason


def test_status_rpc_failure_after_send_is_a_timeout(ledger, payer, submitter):
    mint = Keypair.generate()

    async def unavailable(signatures):
        ledger.calls["getSignatureStatuses"] += 1
        raise RpcError("503 busy")

    ledger.get_signature_statuses = unavailable
    with pytest.raises(ConfirmationTimeout) as excinfo:
        run(submitter.submit(compose_for(payer, mint), payer, mint))

    assert excinfo.value.signature is not None
    assert excinfo.value.attempts == submitter.max_attempts
    assert ledger.calls["sendTransaction"] == 1
    assert ledger.calls["getSignatureStatuses"] == submitter.max_attempts
    assert ledger.accounts.get_account(mint.pubkey) is not None


def test_status_rpc_failure_recovers_on_next_check(ledger, payer, submitter):
    mint = Keypair.generate()
    real_statuses = ledger.get_signature_statuses
    failures = []

    async def flaky(signatures):
        if not failures:
            failures.append(signatures)
            raise RpcError("node is behind", -32005)
        return await real_statuses(signatures)

    ledger.get_signature_statuses = flaky
    signature = run(submitter.submit(compose_for(payer, mint), payer, mint))
    assert failures == [[signature]]
