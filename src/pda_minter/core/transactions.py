"""
Solana Transaction and Instruction Model

This implements Solana's legacy transaction format where:
- Transactions contain multiple instructions that execute atomically
- All account access is declared upfront in one ordered key table
- Instructions reference accounts and programs by index into that table
- Every required signer provides an Ed25519 signature over the message bytes

Based on: https://solana.com/docs/core/transactions
"""

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

import base58

from .accounts import AccountMeta
from .keys import (
    Keypair,
    PUBKEY_LENGTH,
    SIGNATURE_LENGTH,
    address_to_bytes,
    bytes_to_address,
    verify_signature,
)

# Packet limit for a serialized transaction
PACKET_DATA_SIZE = 1232


def encode_length(n: int) -> bytes:
    """Encode a length as Solana's compact-u16 (1 to 3 bytes)."""
    if not 0 <= n <= 0xFFFF:
        raise ValueError(f"Length {n} does not fit in compact-u16")
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_length(data: bytes, offset: int) -> Tuple[int, int]:
    """Decode a compact-u16 at offset; returns (value, new_offset)."""
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise ValueError("Truncated compact-u16")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, offset + i + 1
    raise ValueError("compact-u16 longer than 3 bytes")


class _Reader:
    """Cursor over a byte string that fails loudly on truncation."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        if self.offset + n > len(self.data):
            raise ValueError("Transaction bytes truncated")
        chunk = self.data[self.offset:self.offset + n]
        self.offset += n
        return chunk

    def u8(self) -> int:
        return self.take(1)[0]

    def length(self) -> int:
        value, self.offset = decode_length(self.data, self.offset)
        return value


@dataclass(frozen=True)
class Instruction:
    """
    High-level instruction before compilation to indices.

    This is the developer-friendly format for building transactions.
    It gets compiled down to CompiledInstruction inside a message.
    """
    program_id: str                  # Program to invoke
    accounts: Tuple[AccountMeta, ...]  # Accounts with access metadata
    data: bytes                      # Instruction data

    def __str__(self) -> str:
        return f"Instruction({self.program_id[:8]}..., {len(self.accounts)} accounts, {len(self.data)} bytes)"


@dataclass
class MessageHeader:
    """
    Transaction message header with account access metadata.

    The first num_required_signatures keys sign; within the signers and
    within the non-signers, read-only keys come last.
    """
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass
class CompiledInstruction:
    """Instruction compiled to reference accounts by index."""
    program_id_index: int
    accounts: List[int]
    data: bytes

    def __str__(self) -> str:
        return f"Instruction(program_id_index={self.program_id_index}, accounts={self.accounts}, data_len={len(self.data)})"


@dataclass
class TransactionMessage:
    """The signed portion of a transaction."""
    header: MessageHeader
    account_keys: List[str]
    recent_blockhash: str
    instructions: List[CompiledInstruction]

    def serialize(self) -> bytes:
        """Serialize the message in the ledger's legacy wire format."""
        parts = [
            bytes([
                self.header.num_required_signatures,
                self.header.num_readonly_signed_accounts,
                self.header.num_readonly_unsigned_accounts,
            ]),
            encode_length(len(self.account_keys)),
        ]
        parts.extend(address_to_bytes(key) for key in self.account_keys)
        parts.append(address_to_bytes(self.recent_blockhash))

        parts.append(encode_length(len(self.instructions)))
        for instruction in self.instructions:
            parts.append(bytes([instruction.program_id_index]))
            parts.append(encode_length(len(instruction.accounts)))
            parts.append(bytes(instruction.accounts))
            parts.append(encode_length(len(instruction.data)))
            parts.append(instruction.data)

        return b''.join(parts)

    @classmethod
    def _read(cls, reader: _Reader) -> 'TransactionMessage':
        if reader.offset < len(reader.data) and reader.data[reader.offset] & 0x80:
            raise ValueError("Versioned messages are not supported")
        header = MessageHeader(reader.u8(), reader.u8(), reader.u8())
        account_keys = [bytes_to_address(reader.take(PUBKEY_LENGTH))
                        for _ in range(reader.length())]
        recent_blockhash = bytes_to_address(reader.take(PUBKEY_LENGTH))

        instructions = []
        for _ in range(reader.length()):
            program_id_index = reader.u8()
            accounts = list(reader.take(reader.length()))
            data = reader.take(reader.length())
            instructions.append(CompiledInstruction(program_id_index, accounts, data))

        return cls(header, account_keys, recent_blockhash, instructions)

    @classmethod
    def deserialize(cls, data: bytes) -> 'TransactionMessage':
        reader = _Reader(data)
        message = cls._read(reader)
        if reader.offset != len(data):
            raise ValueError("Trailing bytes after message")
        return message

    @property
    def signer_keys(self) -> List[str]:
        return self.account_keys[:self.header.num_required_signatures]

    def is_writable(self, index: int) -> bool:
        """Whether the key at index may be modified by this message."""
        header = self.header
        num_signed = header.num_required_signatures
        if index < num_signed:
            return index < num_signed - header.num_readonly_signed_accounts
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def decompile(self) -> List[Instruction]:
        """Expand compiled instructions back into address-based instructions."""
        signers = self.header.num_required_signatures
        return [
            Instruction(
                program_id=self.account_keys[ci.program_id_index],
                accounts=tuple(
                    AccountMeta(self.account_keys[i], i < signers, self.is_writable(i))
                    for i in ci.accounts
                ),
                data=ci.data,
            )
            for ci in self.instructions
        ]


@dataclass
class SolanaTransaction:
    """
    Complete Solana transaction with signatures and message.

    Signatures are raw 64-byte values in the same order as the message's
    signer keys; the first one identifies the transaction.
    """
    signatures: List[bytes]
    message: TransactionMessage

    @property
    def signature(self) -> str:
        """Base58 transaction id (the fee payer's signature)."""
        if not self.signatures:
            raise ValueError("Transaction is not signed")
        return base58.b58encode(self.signatures[0]).decode("ascii")

    def serialize(self) -> bytes:
        parts = [encode_length(len(self.signatures))]
        parts.extend(self.signatures)
        parts.append(self.message.serialize())
        return b''.join(parts)

    @classmethod
    def deserialize(cls, data: bytes) -> 'SolanaTransaction':
        reader = _Reader(data)
        signatures = [reader.take(SIGNATURE_LENGTH) for _ in range(reader.length())]
        message = TransactionMessage._read(reader)
        if reader.offset != len(data):
            raise ValueError("Trailing bytes after transaction")
        return cls(signatures=signatures, message=message)

    def verify_signatures(self) -> bool:
        """Each required signer must provide a valid signature over the message."""
        signer_keys = self.message.signer_keys
        if len(self.signatures) != len(signer_keys):
            return False
        message_data = self.message.serialize()
        return all(
            verify_signature(key, sig, message_data)
            for key, sig in zip(signer_keys, self.signatures)
        )

    def get_fee_payer(self) -> str:
        """Get the fee payer (always the first signer)."""
        if not self.message.account_keys:
            raise ValueError("Transaction has no accounts")
        return self.message.account_keys[0]

    def calculate_fee(self, lamports_per_signature: int = 5000) -> int:
        """Base fee: a flat amount per signature."""
        return len(self.signatures) * lamports_per_signature


class TransactionBuilder:
    """
    Builder for constructing Solana transaction messages.

    This handles ordering accounts correctly and compiling instructions to
    index form. Instruction order is preserved exactly as added.
    """

    def __init__(self, fee_payer: str, recent_blockhash: str):
        """
        Args:
            fee_payer: Account that pays transaction fees (must be signer)
            recent_blockhash: Recent blockhash for replay protection
        """
        self.fee_payer = fee_payer
        self.recent_blockhash = recent_blockhash
        self.instructions: List[Instruction] = []

    def add_instruction(self, instruction: Instruction) -> 'TransactionBuilder':
        """Add an instruction to the transaction (fluent interface)."""
        self.instructions.append(instruction)
        return self

    def add_instructions(self, instructions: Sequence[Instruction]) -> 'TransactionBuilder':
        self.instructions.extend(instructions)
        return self

    def build(self) -> TransactionMessage:
        """
        Build the final transaction message.

        Account order:
        1. Fee payer
        2. Other writable signers
        3. Readonly signers
        4. Writable non-signers
        5. Readonly non-signers (including invoked programs)
        Within each group, keys keep the order they were first seen.
        """
        if not self.instructions:
            raise ValueError("Transaction has no instructions")

        # key -> [is_signer, is_writable], in first-seen order
        flags: Dict[str, List[bool]] = {self.fee_payer: [True, True]}
        for instruction in self.instructions:
            for account in instruction.accounts:
                entry = flags.setdefault(account.pubkey, [False, False])
                entry[0] = entry[0] or account.is_signer
                entry[1] = entry[1] or account.is_writable
            flags.setdefault(instruction.program_id, [False, False])

        def group(signer: bool, writable: bool) -> List[str]:
            return [key for key, (s, w) in flags.items()
                    if s == signer and w == writable and key != self.fee_payer]

        writable_signers = [self.fee_payer] + group(True, True)
        readonly_signers = group(True, False)
        writable_non_signers = group(False, True)
        readonly_non_signers = group(False, False)

        account_keys = writable_signers + readonly_signers + writable_non_signers + readonly_non_signers
        account_index = {key: i for i, key in enumerate(account_keys)}

        compiled_instructions = [
            CompiledInstruction(
                program_id_index=account_index[instruction.program_id],
                accounts=[account_index[acc.pubkey] for acc in instruction.accounts],
                data=instruction.data
            )
            for instruction in self.instructions
        ]

        header = MessageHeader(
            num_required_signatures=len(writable_signers) + len(readonly_signers),
            num_readonly_signed_accounts=len(readonly_signers),
            num_readonly_unsigned_accounts=len(readonly_non_signers)
        )

        return TransactionMessage(
            header=header,
            account_keys=account_keys,
            recent_blockhash=self.recent_blockhash,
            instructions=compiled_instructions
        )


def sign_transaction(message: TransactionMessage, signers: Sequence[Keypair]) -> SolanaTransaction:
    """
    Sign a transaction message with the provided keypairs.

    The signers must cover exactly the message's required signers; the
    signatures are placed in message key order regardless of argument order.

    Raises:
        ValueError: a required signer is missing or an unexpected one was given
    """
    by_key: Dict[str, Keypair] = {kp.pubkey: kp for kp in signers}
    required = message.signer_keys

    missing = [key for key in required if key not in by_key]
    if missing:
        raise ValueError(f"Missing signature for {', '.join(missing)}")
    unexpected = set(by_key) - set(required)
    if unexpected:
        raise ValueError(f"Unexpected signer {', '.join(sorted(unexpected))}")

    message_data = message.serialize()
    signatures = [by_key[key].sign(message_data) for key in required]
    transaction = SolanaTransaction(signatures=signatures, message=message)

    size = len(transaction.serialize())
    if size > PACKET_DATA_SIZE:
        raise ValueError(f"Transaction too large: {size} > {PACKET_DATA_SIZE} bytes")
    return transaction
