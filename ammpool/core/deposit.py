"""
Deposit accounting: how much of each asset to take and how many LP units to mint.

Two regimes, selected by the LP supply:

Bootstrap (total_supply == 0):
    x_taken = max_x, y_taken = max_y, lp_minted = requested_lp_amount
    The depositor sets the initial price; there is no ratio to violate.

Proportional (total_supply > 0):
    x_required = ceil(requested_lp_amount * reserve_x / total_supply)
    y_required = ceil(requested_lp_amount * reserve_y / total_supply)
    Accepted only if x_required <= max_x and y_required <= max_y.

Ceiling rounding means any rounding dust is paid by the depositor, never by
the pool.

Everything here is pure: inputs in, a `DepositQuote` or an exception out.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique
from typing import Tuple

from ..errors import RatioViolationError, ZeroAmountError
from .curve import U64_MAX, checked_add, mul_div_ceil, require_u64


@unique
class DepositRegime(Enum):
    BOOTSTRAP = "bootstrap"
    PROPORTIONAL = "proportional"


@dataclass(frozen=True)
class DepositRequest:
    """Caller-chosen LP amount plus slippage caps on each asset."""

    requested_lp_amount: int
    max_x: int
    max_y: int


@dataclass(frozen=True)
class DepositQuote:
    regime: DepositRegime
    x_taken: int
    y_taken: int
    lp_minted: int
    new_reserve_x: int
    new_reserve_y: int
    new_total_supply: int


def required_amounts(
    *,
    reserve_x: int,
    reserve_y: int,
    total_supply: int,
    lp_amount: int,
) -> Tuple[int, int]:
    """
    Ratio-preserving (x, y) needed to mint `lp_amount` against a live pool.

    Raises:
        ValueError: If total_supply is zero (bootstrap has no required amounts)
        AmountOverflowError: If a product exceeds u128 or a result exceeds u64
    """
    require_u64("reserve_x", reserve_x)
    require_u64("reserve_y", reserve_y)
    require_u64("total_supply", total_supply)
    require_u64("lp_amount", lp_amount)
    if total_supply == 0:
        raise ValueError("required amounts are undefined for an empty pool")

    x_required = mul_div_ceil(lp_amount, reserve_x, total_supply, what="x_required")
    y_required = mul_div_ceil(lp_amount, reserve_y, total_supply, what="y_required")
    return x_required, y_required


def quote_deposit(
    *,
    reserve_x: int,
    reserve_y: int,
    total_supply: int,
    request: DepositRequest,
) -> DepositQuote:
    """
    Compute the full effect of a deposit against the given pool state.

    Raises:
        ZeroAmountError: requested_lp_amount == 0, or a bootstrap cap is 0
        RatioViolationError: a required amount exceeds its cap
        AmountOverflowError: an input, product or post-state sum is out of range
    """
    require_u64("reserve_x", reserve_x)
    require_u64("reserve_y", reserve_y)
    require_u64("total_supply", total_supply)
    lp_amount = require_u64("requested_lp_amount", request.requested_lp_amount)
    max_x = require_u64("max_x", request.max_x)
    max_y = require_u64("max_y", request.max_y)

    if lp_amount == 0:
        raise ZeroAmountError("requested_lp_amount must be positive")

    if total_supply == 0:
        if max_x == 0 or max_y == 0:
            # One-sided reserves with outstanding LP would have no price.
            raise ZeroAmountError(f"bootstrap deposit needs both assets: max_x={max_x}, max_y={max_y}")
        regime = DepositRegime.BOOTSTRAP
        x_taken, y_taken = max_x, max_y
    else:
        regime = DepositRegime.PROPORTIONAL
        x_taken, y_taken = required_amounts(
            reserve_x=reserve_x,
            reserve_y=reserve_y,
            total_supply=total_supply,
            lp_amount=lp_amount,
        )
        if x_taken > max_x or y_taken > max_y:
            raise RatioViolationError(x_required=x_taken, y_required=y_taken, max_x=max_x, max_y=max_y)

    return DepositQuote(
        regime=regime,
        x_taken=x_taken,
        y_taken=y_taken,
        lp_minted=lp_amount,
        new_reserve_x=checked_add(reserve_x, x_taken, limit=U64_MAX, what="reserve_x"),
        new_reserve_y=checked_add(reserve_y, y_taken, limit=U64_MAX, what="reserve_y"),
        new_total_supply=checked_add(total_supply, lp_amount, limit=U64_MAX, what="total_supply"),
    )
