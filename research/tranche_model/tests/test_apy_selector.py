"""Tests for dynamic APY selection (13% -> 12% -> 11%)"""
import numpy as np
import pytest

from tranche_model.src.constants import (
    MAX_MONTHLY_RATE,
    MID_MONTHLY_RATE,
    MIN_MONTHLY_RATE,
    PRECISION,
    SECONDS_PER_MONTH,
)
from tranche_model.src.errors import DivideByZeroError
from tranche_model.src.libs.apy_selector import (
    calculate_new_index,
    get_apy_in_bps,
    get_monthly_rate,
    select_dynamic_apy,
    simulate_all_apys,
)
from tranche_model.src.libs.fee_engine import calculate_new_rebase_index
from tranche_model.src.libs.fixed_point import calculate_backing_ratio, mul_div, to_fixed


def test_monthly_rates_match_annual_apy():
    """Each monthly rate compounds to its annual APY"""
    for rate, apy in ((MIN_MONTHLY_RATE, 0.11), (MID_MONTHLY_RATE, 0.12), (MAX_MONTHLY_RATE, 0.13)):
        expected = (1.0 + apy) ** (1.0 / 12.0) - 1.0
        assert np.isclose(rate / PRECISION, expected, rtol=1e-6), (
            f"monthly rate {rate / PRECISION:.12f} does not compound to {apy:.0%}"
        )
        assert np.isclose((1.0 + rate / PRECISION) ** 12 - 1.0, apy, rtol=1e-6)


def test_tier_lookups():
    assert get_apy_in_bps(3) == 1300
    assert get_apy_in_bps(2) == 1200
    assert get_apy_in_bps(1) == 1100
    assert get_monthly_rate(3) == MAX_MONTHLY_RATE
    assert get_monthly_rate(1) == MIN_MONTHLY_RATE
    for invalid in (0, 4, -1):
        assert get_apy_in_bps(invalid) == 0
        assert get_monthly_rate(invalid) == 0


def test_reference_scenario_selects_max_tier():
    selection = select_dynamic_apy(to_fixed(10_000_000), to_fixed(11_140_712))
    assert selection.apy_tier == 3
    assert selection.apy_bps == 1300
    assert selection.selected_rate == MAX_MONTHLY_RATE
    assert not selection.backstop_needed
    assert selection.new_supply == to_fixed(10_000_000) + selection.user_tokens + selection.fee_tokens


@pytest.mark.parametrize(
    "backing, tier, backstop_needed",
    [
        ("1.0200", 3, False),
        ("1.0100", 2, False),
        ("1.0092", 1, False),
        ("1.0085", 1, True),
        ("0.9000", 1, True),
    ],
)
def test_selects_highest_tier_that_stays_backed(backing, tier, backstop_needed):
    supply = to_fixed(1_000_000)
    value = mul_div(supply, to_fixed(backing))
    selection = select_dynamic_apy(supply, value)
    assert selection.apy_tier == tier
    assert selection.backstop_needed == backstop_needed
    if not backstop_needed:
        assert calculate_backing_ratio(value, selection.new_supply) >= PRECISION


def test_management_fee_tokens_join_projected_supply():
    supply = to_fixed(1_000_000)
    plain = select_dynamic_apy(supply, to_fixed(1_020_000))
    with_fee = select_dynamic_apy(supply, to_fixed(1_020_000), mgmt_fee_tokens=to_fixed(500))
    assert with_fee.mgmt_fee_tokens == to_fixed(500)
    assert with_fee.new_supply == plain.new_supply + to_fixed(500)


def test_simulate_all_apys_is_monotonic():
    supply = to_fixed(5_000_000)
    for value in (to_fixed(4_000_000), to_fixed(5_000_000), to_fixed(5_600_000), to_fixed(9_000_000)):
        backing = simulate_all_apys(supply, value)
        assert set(backing) == {1, 2, 3}
        assert backing[1] > backing[2] > backing[3]


def test_zero_supply_is_rejected():
    with pytest.raises(DivideByZeroError):
        select_dynamic_apy(0, to_fixed(1))
    with pytest.raises(DivideByZeroError):
        simulate_all_apys(0, to_fixed(1))


def test_calculate_new_index_uses_tier_rate():
    assert calculate_new_index(PRECISION, 2) == calculate_new_rebase_index(PRECISION, MID_MONTHLY_RATE)
    assert calculate_new_index(PRECISION, 3, SECONDS_PER_MONTH) > calculate_new_index(PRECISION, 1)
