"""Tests for the 1e18 fixed point helpers"""
from decimal import Decimal

import pytest

from tranche_model.src.constants import MAX_UINT256, PRECISION
from tranche_model.src.errors import ArithmeticError, DivideByZeroError, OutOfRangeError
from tranche_model.src.libs.fixed_point import (
    apply_percentage,
    calculate_backing_ratio,
    calculate_balance_from_shares,
    calculate_deposit_cap,
    calculate_shares_from_balance,
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    fp_max,
    fp_min,
    from_fixed,
    lp_units_for,
    mul_div,
    to_fixed,
)


def test_checked_arithmetic_bounds():
    assert checked_add(1, 2) == 3
    assert checked_sub(5, 5) == 0
    assert checked_mul(3, 4) == 12
    assert checked_div(7, 2) == 3

    with pytest.raises(ArithmeticError):
        checked_add(MAX_UINT256, 1)
    with pytest.raises(ArithmeticError):
        checked_sub(1, 2)
    with pytest.raises(ArithmeticError):
        checked_mul(MAX_UINT256, 2)
    with pytest.raises(DivideByZeroError):
        checked_div(1, 0)


def test_divide_by_zero_is_an_arithmetic_error():
    assert issubclass(DivideByZeroError, ArithmeticError)


def test_mul_div_rounds_down():
    assert mul_div(10, PRECISION // 3) == 3
    assert mul_div(to_fixed(2), to_fixed("1.5")) == to_fixed(3)
    assert mul_div(7, 1, 2) == 3


def test_apply_percentage():
    value = to_fixed(1_000)
    assert apply_percentage(value, 0) == value
    assert apply_percentage(value, 1_500) == to_fixed(1_150)
    assert apply_percentage(value, -2_500) == to_fixed(750)
    assert apply_percentage(value, -10_000) == 0

    with pytest.raises(OutOfRangeError):
        apply_percentage(value, -10_001)


def test_backing_ratio():
    assert calculate_backing_ratio(to_fixed(110), to_fixed(100)) == to_fixed("1.1")
    assert calculate_backing_ratio(0, to_fixed(100)) == 0
    with pytest.raises(DivideByZeroError):
        calculate_backing_ratio(to_fixed(1), 0)


def test_shares_and_balances():
    index = to_fixed("1.25")
    shares = to_fixed(800)
    assert calculate_balance_from_shares(shares, index) == to_fixed(1_000)
    assert calculate_shares_from_balance(to_fixed(1_000), index) == shares
    assert calculate_balance_from_shares(shares, PRECISION) == shares
    with pytest.raises(DivideByZeroError):
        calculate_shares_from_balance(to_fixed(1), 0)


def test_deposit_cap_is_ten_times_reserve():
    assert calculate_deposit_cap(to_fixed(625_000)) == to_fixed(6_250_000)
    assert calculate_deposit_cap(0) == 0


def test_min_max():
    assert fp_min(3, 5) == 3
    assert fp_max(3, 5) == 5
    assert fp_min(4, 4) == 4


def test_decimal_conversions():
    assert to_fixed("1.5") == 1_500_000_000_000_000_000
    assert to_fixed(Decimal("0.000000000000000001")) == 1
    assert to_fixed(2) == 2 * PRECISION
    assert from_fixed(to_fixed("12.25")) == 12.25


def test_lp_units_for():
    assert lp_units_for(to_fixed(150), to_fixed("1.5")) == to_fixed(100)
    assert lp_units_for(to_fixed(150), to_fixed("1.5"), available=to_fixed(40)) == to_fixed(40)
    # No price means value moves without LP units
    assert lp_units_for(to_fixed(150), 0) == 0
