"""Unit tests for message compilation and the wire format."""

import pytest

from pda_minter.core.accounts import AccountMeta, rent_exempt_minimum
from pda_minter.core.keys import Keypair
from pda_minter.core.transactions import (
    Instruction,
    SolanaTransaction,
    TransactionBuilder,
    TransactionMessage,
    decode_length,
    encode_length,
    sign_transaction,
)
from pda_minter.programs.system import SYSTEM_PROGRAM_ID, create_account
from pda_minter.programs.token import ACCOUNT_SIZE, MINT_SIZE, TOKEN_PROGRAM_ID, initialize_mint2

BLOCKHASH = Keypair.from_seed(b"\x01" * 32).pubkey


@pytest.mark.parametrize("value, encoded", [
    (0, b"\x00"),
    (127, b"\x7f"),
    (128, b"\x80\x01"),
    (16383, b"\xff\x7f"),
    (16384, b"\x80\x80\x01"),
    (65535, b"\xff\xff\x03"),
])
def test_compact_u16(value, encoded):
    assert encode_length(value) == encoded
    assert decode_length(encoded, 0) == (value, len(encoded))


def test_compact_u16_out_of_range():
    with pytest.raises(ValueError):
        encode_length(65536)


def test_rent_matches_cluster_defaults():
    assert rent_exempt_minimum(MINT_SIZE) == 1_461_600
    assert rent_exempt_minimum(ACCOUNT_SIZE) == 2_039_280


@pytest.fixture
def creation_message():
    payer, mint = Keypair.generate(), Keypair.generate()
    builder = TransactionBuilder(payer.pubkey, BLOCKHASH)
    builder.add_instruction(create_account(payer.pubkey, mint.pubkey, 1_461_600, MINT_SIZE, TOKEN_PROGRAM_ID))
    builder.add_instruction(initialize_mint2(mint.pubkey, 6, payer.pubkey, None))
    return payer, mint, builder.build()


def test_fee_payer_comes_first(creation_message):
    payer, mint, message = creation_message
    assert message.account_keys[0] == payer.pubkey
    assert message.account_keys[1] == mint.pubkey


def test_header_counts(creation_message):
    _, _, message = creation_message
    # payer + mint sign; both programs are read-only non-signers
    assert message.header.num_required_signatures == 2
    assert message.header.num_readonly_signed_accounts == 0
    assert message.header.num_readonly_unsigned_accounts == 2
    assert set(message.account_keys[2:]) == {SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID}


def test_instruction_order_preserved(creation_message):
    _, _, message = creation_message
    programs = [message.account_keys[ci.program_id_index] for ci in message.instructions]
    assert programs == [SYSTEM_PROGRAM_ID, TOKEN_PROGRAM_ID]


def test_writable_signer_flags_merge():
    payer = Keypair.generate()
    other = Keypair.generate().pubkey
    program = Keypair.generate().pubkey
    builder = TransactionBuilder(payer.pubkey, BLOCKHASH)
    builder.add_instruction(Instruction(program, (AccountMeta(other, False, False),), b""))
    builder.add_instruction(Instruction(program, (AccountMeta(other, False, True),), b""))
    message = builder.build()
    index = message.account_keys.index(other)
    assert message.is_writable(index)
    assert not message.is_writable(message.account_keys.index(program))


def test_empty_transaction_rejected():
    with pytest.raises(ValueError):
        TransactionBuilder(Keypair.generate().pubkey, BLOCKHASH).build()


def test_signed_transaction_survives_the_wire(creation_message):
    payer, mint, message = creation_message
    tx = sign_transaction(message, [mint, payer])

    decoded = SolanaTransaction.deserialize(tx.serialize())
    assert decoded.signature == tx.signature
    assert decoded.message.account_keys == message.account_keys
    assert decoded.message.recent_blockhash == BLOCKHASH
    assert decoded.verify_signatures()
    assert [i.data for i in decoded.message.decompile()] == [i.data for i in message.decompile()]


def test_signatures_follow_key_order(creation_message):
    payer, mint, message = creation_message
    tx = sign_transaction(message, [mint, payer])
    data = message.serialize()
    assert payer.sign(data) == tx.signatures[0]
    assert mint.sign(data) == tx.signatures[1]


def test_missing_signer(creation_message):
    payer, _, message = creation_message
    with pytest.raises(ValueError, match="Missing signature"):
        sign_transaction(message, [payer])


def test_unexpected_signer(creation_message):
    payer, mint, message = creation_message
    with pytest.raises(ValueError, match="Unexpected signer"):
        sign_transaction(message, [payer, mint, Keypair.generate()])


def test_tampered_transaction_fails_verification(creation_message):
    payer, mint, message = creation_message
    tx = sign_transaction(message, [payer, mint])
    wire = bytearray(tx.serialize())
    wire[-1] ^= 0x01
    assert not SolanaTransaction.deserialize(bytes(wire)).verify_signatures()


def test_truncated_bytes_rejected(creation_message):
    payer, mint, message = creation_message
    wire = sign_transaction(message, [payer, mint]).serialize()
    with pytest.raises(ValueError):
        SolanaTransaction.deserialize(wire[:-3])
    with pytest.raises(ValueError):
        TransactionMessage.deserialize(message.serialize() + b"\x00")
