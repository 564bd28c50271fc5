# [TESTER] v1

from __future__ import annotations

import pytest

from ammpool.core.curve import U64_MAX, U128_MAX, ceil_div, checked_add, checked_mul, mul_div_ceil, require_u64
from ammpool.errors import AmountOverflowError


def test_ceil_div_rounds_up_only_on_remainder() -> None:
    assert ceil_div(10, 5) == 2
    assert ceil_div(11, 5) == 3
    assert ceil_div(0, 7) == 0
    assert ceil_div(1, 7) == 1


def test_ceil_div_rejects_zero_denominator() -> None:
    with pytest.raises(ValueError, match="denominator"):
        ceil_div(1, 0)


def test_checked_add_enforces_u64_limit() -> None:
    assert checked_add(U64_MAX - 1, 1) == U64_MAX
    with pytest.raises(AmountOverflowError, match="overflows"):
        checked_add(U64_MAX, 1)


def test_checked_mul_enforces_u128_limit() -> None:
    assert checked_mul(U64_MAX, U64_MAX) <= U128_MAX
    with pytest.raises(AmountOverflowError):
        checked_mul(U128_MAX, 2)


def test_mul_div_ceil_uses_exact_integer_product() -> None:
    # A float-based ratio would lose the low bits here.
    a = (1 << 63) + 1
    assert mul_div_ceil(a, 3, 3) == a
    assert mul_div_ceil(a, 2, 3) == -(-(a * 2) // 3)


def test_mul_div_ceil_rejects_result_above_u64() -> None:
    with pytest.raises(AmountOverflowError, match="x_required"):
        mul_div_ceil(U64_MAX, U64_MAX, 1, what="x_required")


def test_require_u64_type_and_range() -> None:
    assert require_u64("v", 0) == 0
    with pytest.raises(TypeError):
        require_u64("v", True)  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="non-negative"):
        require_u64("v", -1)
    with pytest.raises(AmountOverflowError):
        require_u64("v", U64_MAX + 1)
