# [TESTER] v1

from __future__ import annotations

import pytest

from ammpool.core.curve import U64_MAX
from ammpool.core.deposit import DepositRegime, DepositRequest, quote_deposit, required_amounts
from ammpool.errors import AmountOverflowError, RatioViolationError, ZeroAmountError


def test_bootstrap_takes_caps_and_mints_requested_amount() -> None:
    quote = quote_deposit(
        reserve_x=0,
        reserve_y=0,
        total_supply=0,
        request=DepositRequest(requested_lp_amount=7, max_x=100_000_000, max_y=200_000_000),
    )
    assert quote.regime is DepositRegime.BOOTSTRAP
    assert (quote.x_taken, quote.y_taken, quote.lp_minted) == (100_000_000, 200_000_000, 7)
    assert (quote.new_reserve_x, quote.new_reserve_y, quote.new_total_supply) == (100_000_000, 200_000_000, 7)


def test_bootstrap_requires_both_assets() -> None:
    with pytest.raises(ZeroAmountError, match="both assets"):
        quote_deposit(
            reserve_x=0,
            reserve_y=0,
            total_supply=0,
            request=DepositRequest(requested_lp_amount=10, max_x=0, max_y=5),
        )


def test_zero_lp_request_is_rejected_in_both_regimes() -> None:
    for reserves, supply in (((0, 0), 0), ((100, 200), 100)):
        with pytest.raises(ZeroAmountError):
            quote_deposit(
                reserve_x=reserves[0],
                reserve_y=reserves[1],
                total_supply=supply,
                request=DepositRequest(requested_lp_amount=0, max_x=10, max_y=10),
            )


def test_proportional_amounts_are_exact_when_divisible() -> None:
    quote = quote_deposit(
        reserve_x=100_000_000,
        reserve_y=200_000_000,
        total_supply=100_000_000,
        request=DepositRequest(requested_lp_amount=50_000_000, max_x=50_000_000, max_y=100_000_000),
    )
    assert quote.regime is DepositRegime.PROPORTIONAL
    assert (quote.x_taken, quote.y_taken, quote.lp_minted) == (50_000_000, 100_000_000, 50_000_000)
    assert quote.new_reserve_x * 2 == quote.new_reserve_y


def test_proportional_amounts_round_up_in_pool_favor() -> None:
    # 1 * 10 / 3 = 3.33.. -> 4 ; 1 * 20 / 3 = 6.66.. -> 7
    assert required_amounts(reserve_x=10, reserve_y=20, total_supply=3, lp_amount=1) == (4, 7)


def test_scenario_b_rejects_when_x_cap_is_too_low() -> None:
    supply = 100_000_000
    with pytest.raises(RatioViolationError) as excinfo:
        quote_deposit(
            reserve_x=100_000_000,
            reserve_y=200_000_000,
            total_supply=supply,
            request=DepositRequest(requested_lp_amount=50_000_000, max_x=10_000_000, max_y=200_000_000),
        )
    err = excinfo.value
    assert err.code == "RatioViolation"
    assert err.x_required == -(-(50_000_000 * 100_000_000) // supply)
    assert err.y_required == -(-(50_000_000 * 200_000_000) // supply)


def test_ratio_violation_on_y_cap_alone() -> None:
    with pytest.raises(RatioViolationError):
        quote_deposit(
            reserve_x=1_000,
            reserve_y=3_000,
            total_supply=1_000,
            request=DepositRequest(requested_lp_amount=10, max_x=10, max_y=29),
        )


def test_caps_may_exceed_required_amounts() -> None:
    quote = quote_deposit(
        reserve_x=1_000,
        reserve_y=3_000,
        total_supply=1_000,
        request=DepositRequest(requested_lp_amount=10, max_x=1_000_000, max_y=1_000_000),
    )
    assert (quote.x_taken, quote.y_taken) == (10, 30)


def test_overflowing_inputs_are_rejected() -> None:
    with pytest.raises(AmountOverflowError):
        quote_deposit(
            reserve_x=0,
            reserve_y=0,
            total_supply=0,
            request=DepositRequest(requested_lp_amount=1, max_x=U64_MAX + 1, max_y=1),
        )


def test_post_state_supply_overflow_is_rejected() -> None:
    with pytest.raises(AmountOverflowError, match="total_supply"):
        quote_deposit(
            reserve_x=1,
            reserve_y=1,
            total_supply=U64_MAX,
            request=DepositRequest(requested_lp_amount=1, max_x=1, max_y=1),
        )


def test_required_amount_overflow_is_rejected() -> None:
    with pytest.raises(AmountOverflowError, match="x_required"):
        required_amounts(reserve_x=U64_MAX, reserve_y=1, total_supply=1, lp_amount=2)


def test_required_amounts_undefined_for_empty_pool() -> None:
    with pytest.raises(ValueError, match="empty pool"):
        required_amounts(reserve_x=0, reserve_y=0, total_supply=0, lp_amount=1)
