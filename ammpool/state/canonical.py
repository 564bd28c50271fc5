"""
Deterministic canonical encoding primitives.

Used for address derivation and for hashing pool snapshots, so that the same
logical state always produces the same bytes.
"""

from __future__ import annotations

import hashlib
import json
import re
from typing import Any


CANONICAL_ENCODING_VERSION = 1

ID_BYTES = 32

_HEX_CHARS_RE = re.compile(r"^[0-9a-f]+$")


def _reject_floats(value: Any) -> None:
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
        return
    if isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """
    Canonical JSON encoding for hashing.

    Rules:
    - UTF-8
    - sort_keys=True
    - separators=(',', ':') (no whitespace)
    - allow_nan=False
    - floats rejected (to avoid representation ambiguity)
    """
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"ammpool:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def encode_uvarint(value: int) -> bytes:
    """Unsigned LEB128."""
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise ValueError(f"uvarint must be a non-negative int, got {value!r}")
    out = bytearray()
    n = value
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            break
    return bytes(out)


def encode_bytes(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise TypeError("value must be bytes")
    value_bytes = bytes(value)
    return encode_uvarint(len(value_bytes)) + value_bytes


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int = ID_BYTES, name: str = "id") -> bytes:
    """Decode a lowercase 0x-prefixed hex string of exactly `nbytes` bytes."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    expected_len = 2 + 2 * nbytes
    if not hex_str.startswith("0x") or len(hex_str) != expected_len:
        raise ValueError(f"{name} must be a 0x-prefixed {nbytes}-byte hex string")
    body = hex_str[2:]
    if not _HEX_CHARS_RE.fullmatch(body):
        raise ValueError(f"{name} must be lowercase hex")
    return bytes.fromhex(body)


def is_canonical_id(value: object, *, nbytes: int = ID_BYTES) -> bool:
    """True iff `value` is a lowercase 0x-prefixed hex id of `nbytes` bytes."""
    try:
        hex_to_bytes_fixed(value, nbytes=nbytes)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False
    return True


def canonical_id(hex_str: str, *, nbytes: int = ID_BYTES, name: str = "id") -> str:
    """
    Canonicalize a fixed-size hex id (lowercase, 0x-prefixed).

    Accepts either 0x-prefixed or raw hex input, in any case.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    s = s.lower()
    expected_len = 2 * nbytes
    if len(s) != expected_len:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {expected_len})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return "0x" + s
