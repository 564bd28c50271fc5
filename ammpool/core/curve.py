"""
Checked integer arithmetic for pool accounting.

Amounts are unsigned 64-bit values and intermediate products are unsigned
128-bit values. Python integers never overflow on their own, so every bound is
checked explicitly and reported as `AmountOverflowError`.
"""

from __future__ import annotations

from ..errors import AmountOverflowError, InvalidArgumentError


U64_MAX = (1 << 64) - 1
U128_MAX = (1 << 128) - 1


def _require_int(name: str, value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def require_u64(name: str, value: int) -> int:
    _require_int(name, value)
    if value < 0:
        raise InvalidArgumentError(f"{name} must be non-negative: {value}")
    if value > U64_MAX:
        raise AmountOverflowError(f"{name} exceeds u64: {value}")
    return value


def checked_add(a: int, b: int, *, limit: int = U64_MAX, what: str = "sum") -> int:
    out = a + b
    if out > limit:
        raise AmountOverflowError(f"{what} overflows: {a} + {b} > {limit}")
    return out


def checked_mul(a: int, b: int, *, limit: int = U128_MAX, what: str = "product") -> int:
    out = a * b
    if out > limit:
        raise AmountOverflowError(f"{what} overflows: {a} * {b} > {limit}")
    return out


def ceil_div(numerator: int, denominator: int) -> int:
    """ceil(numerator / denominator) for non-negative numerator, positive denominator."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive: {denominator}")
    if numerator < 0:
        raise ValueError(f"numerator must be non-negative: {numerator}")
    return -(-numerator // denominator)


def mul_div_ceil(a: int, b: int, denominator: int, *, limit: int = U64_MAX, what: str = "amount") -> int:
    """
    ceil(a * b / denominator) with the product checked against u128 and the
    result checked against `limit`.
    """
    out = ceil_div(checked_mul(a, b, what=f"{what} product"), denominator)
    if out > limit:
        raise AmountOverflowError(f"{what} overflows: {out} > {limit}")
    return out
