"""
Deterministic address derivation with canonical bump proofs.

A derived address is a pure function of (seeds, bump, program_id):

    address = sha256(domain || program_id || uvarint(len(seeds)) || encode_bytes(seed)... || bump)

Addresses whose first byte has the high bit set are reserved for keys held by
principals, so a candidate landing there is rejected and the next lower bump
is tried. The canonical bump is the highest bump in [0, 255] producing an
address in the derived space; storing it lets anyone re-check that an address
was derived from its seeds instead of chosen freely.
"""

from __future__ import annotations

import hashlib
from typing import Sequence, Tuple, Union

from .canonical import ID_BYTES, domain_sep_bytes, encode_bytes, encode_uvarint, hex_to_bytes_fixed


Seed = Union[str, bytes]

MAX_BUMP = 255
MAX_SEEDS = 16
MAX_SEED_BYTES = 32

DEFAULT_PROGRAM_ID = "0x" + hashlib.sha256(b"ammpool-program").hexdigest()

_DOMAIN = domain_sep_bytes("derived-address")


class DerivationError(ValueError):
    """No bump produced a valid derived address, or seeds are malformed."""


def _seed_bytes(seed: Seed) -> bytes:
    if isinstance(seed, (bytes, bytearray)):
        out = bytes(seed)
    elif isinstance(seed, str):
        # Hex ids are seeded by their raw bytes; labels by their ASCII text.
        if seed.startswith("0x") and len(seed) == 2 + 2 * ID_BYTES:
            out = hex_to_bytes_fixed(seed, name="seed")
        else:
            out = seed.encode("ascii")
    else:
        raise TypeError(f"seed must be str or bytes, got {type(seed).__name__}")
    if len(out) > MAX_SEED_BYTES:
        raise DerivationError(f"seed longer than {MAX_SEED_BYTES} bytes")
    return out


def _encode_seeds(seeds: Sequence[Seed]) -> bytes:
    if len(seeds) > MAX_SEEDS:
        raise DerivationError(f"at most {MAX_SEEDS} seeds are allowed")
    out = bytearray(encode_uvarint(len(seeds)))
    for seed in seeds:
        out += encode_bytes(_seed_bytes(seed))
    return bytes(out)


def _in_derived_space(digest: bytes) -> bool:
    return digest[0] & 0x80 == 0


def is_derived_space(address: str) -> bool:
    """
    True iff `address` lies in the derived half of the id space.

    Such addresses are owned by programs, never by principals, so they cannot
    sign a debit or act as a depositor.
    """
    return _in_derived_space(hex_to_bytes_fixed(address, name="address"))


def create_derived_address(seeds: Sequence[Seed], bump: int, program_id: str = DEFAULT_PROGRAM_ID) -> str:
    """
    Compute the address for an explicit bump.

    Raises DerivationError if the candidate falls in the reserved key space.
    """
    if not isinstance(bump, int) or isinstance(bump, bool) or not (0 <= bump <= MAX_BUMP):
        raise DerivationError(f"bump must be an int in [0, {MAX_BUMP}]: {bump!r}")
    digest = _candidate(_prefix(seeds, program_id), bump)
    if not _in_derived_space(digest):
        raise DerivationError("candidate address is in the reserved key space")
    return "0x" + digest.hex()


def _prefix(seeds: Sequence[Seed], program_id: str) -> bytes:
    return _DOMAIN + hex_to_bytes_fixed(program_id, name="program_id") + _encode_seeds(seeds)


def _candidate(prefix: bytes, bump: int) -> bytes:
    return hashlib.sha256(prefix + bytes([bump])).digest()


def find_derived_address(seeds: Sequence[Seed], program_id: str = DEFAULT_PROGRAM_ID) -> Tuple[str, int]:
    """Return (address, canonical_bump) for the given seeds."""
    prefix = _prefix(seeds, program_id)
    for bump in range(MAX_BUMP, -1, -1):
        digest = _candidate(prefix, bump)
        if _in_derived_space(digest):
            return "0x" + digest.hex(), bump
    raise DerivationError("unable to find a valid bump for seeds")


def verify_derived_address(
    address: str,
    seeds: Sequence[Seed],
    bump: int,
    program_id: str = DEFAULT_PROGRAM_ID,
) -> bool:
    """
    True iff `address` is the canonical derived address of `seeds`.

    A valid but non-canonical bump is rejected, so a single seed set can never
    name two different accounts.
    """
    try:
        expected, canonical_bump = find_derived_address(seeds, program_id)
    except DerivationError:
        return False
    return bump == canonical_bump and address == expected
