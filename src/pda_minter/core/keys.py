"""
Ed25519 Keypairs and Base58 Addresses

Solana identifies every account by a 32-byte Ed25519 public key, written as
base58 text. Program-derived addresses share the same 32-byte space but are
chosen to lie OFF the Ed25519 curve, so no private key can ever exist for them.

Based on: https://solana.com/docs/core/accounts#address
"""

import json
import secrets
from pathlib import Path
from typing import List, Union

import base58
from ecdsa import SigningKey, VerifyingKey, Ed25519, BadSignatureError
from ecdsa.ellipticcurve import PointEdwards
from ecdsa.errors import MalformedPointError

from ..errors import InvalidParameter

PUBKEY_LENGTH = 32
SIGNATURE_LENGTH = 64


def address_to_bytes(address: str) -> bytes:
    """Decode a base58 address, rejecting anything that is not 32 bytes."""
    if not isinstance(address, str) or not address:
        raise InvalidParameter(f"Not a valid Solana address: {address!r}")
    try:
        raw = base58.b58decode(address)
    except ValueError:
        raise InvalidParameter(f"Not a valid Solana address: {address!r}")
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidParameter(
            f"Not a valid Solana address: {address!r} decodes to {len(raw)} bytes"
        )
    return raw


def bytes_to_address(raw: bytes) -> str:
    """Encode 32 raw bytes as a base58 address."""
    if len(raw) != PUBKEY_LENGTH:
        raise InvalidParameter(f"Address must be {PUBKEY_LENGTH} bytes, got {len(raw)}")
    return base58.b58encode(bytes(raw)).decode("ascii")


def validate_address(address: str) -> str:
    """Return the address unchanged if it is well formed."""
    address_to_bytes(address)
    return address


def is_on_curve(raw: bytes) -> bool:
    """
    Check whether 32 bytes decode to a point on the Ed25519 curve.

    Only on-curve points can be public keys of a real keypair; program-derived
    addresses must fail this check.
    """
    try:
        PointEdwards.from_bytes(Ed25519.curve, bytes(raw))
    except MalformedPointError:
        return False
    return True


class Keypair:
    """
    An Ed25519 signing keypair.

    The secret is the 32-byte seed; the Solana CLI stores keypairs as a JSON
    array of 64 integers (seed followed by public key).
    """

    def __init__(self, signing_key: SigningKey):
        self._signing_key = signing_key
        self._public = signing_key.verifying_key.to_string()

    @classmethod
    def generate(cls) -> 'Keypair':
        """Create a fresh random keypair."""
        return cls.from_seed(secrets.token_bytes(32))

    @classmethod
    def from_seed(cls, seed: bytes) -> 'Keypair':
        if len(seed) != 32:
            raise InvalidParameter(f"Keypair seed must be 32 bytes, got {len(seed)}")
        return cls(SigningKey.from_string(bytes(seed), curve=Ed25519))

    @classmethod
    def from_bytes(cls, raw: Union[bytes, List[int]]) -> 'Keypair':
        """Load the 64-byte secret+public form, checking that both halves agree."""
        raw = bytes(raw)
        if len(raw) != 64:
            raise InvalidParameter(f"Keypair must be 64 bytes, got {len(raw)}")
        keypair = cls.from_seed(raw[:32])
        if keypair.public_bytes != raw[32:]:
            raise InvalidParameter("Keypair public key does not match its secret")
        return keypair

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> 'Keypair':
        path = Path(path).expanduser()
        try:
            with open(path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise InvalidParameter(f"Cannot read keypair file {path}: {e}")
        return cls.from_bytes(data)

    def to_json_file(self, path: Union[str, Path]) -> None:
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            json.dump(list(self.to_bytes()), f)

    @property
    def public_bytes(self) -> bytes:
        return self._public

    @property
    def pubkey(self) -> str:
        """Base58 address of this keypair."""
        return bytes_to_address(self._public)

    def to_bytes(self) -> bytes:
        return self._signing_key.to_string() + self._public

    def sign(self, message: bytes) -> bytes:
        """Produce a 64-byte Ed25519 signature over the message."""
        return self._signing_key.sign(message)

    def __repr__(self) -> str:
        return f"Keypair({self.pubkey})"


def verify_signature(address: str, signature: bytes, message: bytes) -> bool:
    """Check an Ed25519 signature against a base58 public key."""
    try:
        key = VerifyingKey.from_string(address_to_bytes(address), curve=Ed25519)
        return key.verify(signature, message)
    except (BadSignatureError, MalformedPointError, ValueError):
        return False
