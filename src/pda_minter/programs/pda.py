"""
Program Derived Addresses (PDA)

A PDA is a 32-byte address computed from seeds and a program id:

    sha256(seed_1 || ... || seed_n || [bump] || program_id || "ProgramDerivedAddress")

The bump byte is searched from 255 downward until the hash lands OFF the
Ed25519 curve. Off-curve means there is no private key for the address; the
only way to act as it is for the owning program to sign through a
cross-program invocation with the same seeds.

Derivation is pure: the same seeds and program always give the same
(address, bump), so any client can recompute an authority instead of storing it.

Based on: https://solana.com/docs/core/pda
"""

import hashlib
from dataclasses import dataclass
from typing import Sequence, Tuple

from ..core.keys import address_to_bytes, bytes_to_address, is_on_curve
from ..errors import DerivationFailure, InvalidParameter

PDA_MARKER = b"ProgramDerivedAddress"
MAX_SEEDS = 16
MAX_SEED_LENGTH = 32

# Seed the minter program uses for its mint/freeze authority
MINT_AUTHORITY_SEED = b"mint_authority"


@dataclass(frozen=True)
class AuthorityDerivation:
    """
    A derived authority: a computed identifier, not a key.

    No private key exists for derived_address. Only owning_program can act
    as it, by invoking another program with signer seeds [seed, [bump_seed]].
    """
    seed: bytes
    owning_program: str
    derived_address: str
    bump_seed: int

    @property
    def signer_seeds(self) -> Tuple[bytes, bytes]:
        """Seeds the owning program presents to prove it controls the address."""
        return (self.seed, bytes([self.bump_seed]))


def _check_seeds(seeds: Sequence[bytes]) -> None:
    if len(seeds) > MAX_SEEDS:
        raise InvalidParameter(f"At most {MAX_SEEDS} seeds allowed, got {len(seeds)}")
    for seed in seeds:
        if len(seed) > MAX_SEED_LENGTH:
            raise InvalidParameter(f"Seed longer than {MAX_SEED_LENGTH} bytes: {seed!r}")


def create_program_address(seeds: Sequence[bytes], program_id: str) -> str:
    """
    Compute the address for seeds that already include the bump.

    Raises:
        DerivationFailure: the hash is a valid curve point, so it is not a PDA
    """
    _check_seeds(seeds)
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(address_to_bytes(program_id))
    hasher.update(PDA_MARKER)
    digest = hasher.digest()

    if is_on_curve(digest):
        raise DerivationFailure("Derived address lies on the Ed25519 curve")
    return bytes_to_address(digest)


def find_program_address(seeds: Sequence[bytes], program_id: str) -> Tuple[str, int]:
    """
    Find the canonical (highest-bump) PDA for seeds under program_id.

    Roughly half of all hashes are on the curve, so the search nearly always
    stops within a couple of bumps; exhausting all 256 is a defined failure.
    """
    _check_seeds(list(seeds) + [b""])
    for bump in range(255, -1, -1):
        try:
            return create_program_address(list(seeds) + [bytes([bump])], program_id), bump
        except DerivationFailure:
            continue
    raise DerivationFailure(f"No valid program address for seeds {list(seeds)!r} under {program_id}")


def derive(seed: bytes, owning_program: str) -> AuthorityDerivation:
    """Derive the single-seed authority an owning program signs for."""
    address, bump = find_program_address([seed], owning_program)
    return AuthorityDerivation(
        seed=seed,
        owning_program=owning_program,
        derived_address=address,
        bump_seed=bump,
    )


def derive_mint_authority(program_id: str) -> AuthorityDerivation:
    """The minter program's mint and freeze authority."""
    return derive(MINT_AUTHORITY_SEED, program_id)
