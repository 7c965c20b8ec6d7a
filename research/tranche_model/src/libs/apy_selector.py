"""Dynamic APY selection for the Senior ledger

Tries 13% -> 12% -> 11% and keeps the highest tier whose projected supply
stays fully backed. When even 11% would depeg, 11% is used anyway and the
caller has to run the backstop right after the rebase.
"""
from dataclasses import dataclass
from typing import Dict

from ..constants import (
    MIN_APY_BPS,
    MID_APY_BPS,
    MAX_APY_BPS,
    MIN_MONTHLY_RATE,
    MID_MONTHLY_RATE,
    MAX_MONTHLY_RATE,
    SECONDS_PER_MONTH,
    SENIOR_TRIGGER_BACKING,
)
from ..errors import DivideByZeroError
from .fee_engine import calculate_new_rebase_index, calculate_rebase_supply
from .fixed_point import calculate_backing_ratio

# tier -> (annual bps, monthly rate), highest first
APY_TIERS = {
    3: (MAX_APY_BPS, MAX_MONTHLY_RATE),
    2: (MID_APY_BPS, MID_MONTHLY_RATE),
    1: (MIN_APY_BPS, MIN_MONTHLY_RATE),
}


@dataclass(frozen=True)
class APYSelection:
    apy_tier: int
    selected_rate: int
    new_supply: int
    user_tokens: int
    fee_tokens: int
    mgmt_fee_tokens: int
    backstop_needed: bool

    @property
    def apy_bps(self) -> int:
        return get_apy_in_bps(self.apy_tier)


def get_apy_in_bps(tier: int) -> int:
    """Annual APY of a tier in bps, 0 for an unknown tier"""
    entry = APY_TIERS.get(tier)
    return entry[0] if entry else 0


def get_monthly_rate(tier: int) -> int:
    """Monthly compounding rate of a tier, 0 for an unknown tier"""
    entry = APY_TIERS.get(tier)
    return entry[1] if entry else 0


def select_dynamic_apy(
    current_supply: int,
    net_vault_value: int,
    time_elapsed: int = SECONDS_PER_MONTH,
    mgmt_fee_tokens: int = 0,
) -> APYSelection:
    if current_supply == 0:
        raise DivideByZeroError("Cannot select APY for zero supply")

    for tier in sorted(APY_TIERS, reverse=True):
        rate = get_monthly_rate(tier)
        projected = calculate_rebase_supply(current_supply, rate, time_elapsed, mgmt_fee_tokens)
        if calculate_backing_ratio(net_vault_value, projected.new_supply) >= SENIOR_TRIGGER_BACKING:
            return APYSelection(
                apy_tier=tier,
                selected_rate=rate,
                new_supply=projected.new_supply,
                user_tokens=projected.user_tokens,
                fee_tokens=projected.fee_tokens,
                mgmt_fee_tokens=mgmt_fee_tokens,
                backstop_needed=False,
            )

    # Every tier depegs: fall back to the lowest one and flag the backstop
    return APYSelection(
        apy_tier=1,
        selected_rate=MIN_MONTHLY_RATE,
        new_supply=projected.new_supply,
        user_tokens=projected.user_tokens,
        fee_tokens=projected.fee_tokens,
        mgmt_fee_tokens=mgmt_fee_tokens,
        backstop_needed=True,
    )


def simulate_all_apys(
    current_supply: int,
    net_vault_value: int,
    time_elapsed: int = SECONDS_PER_MONTH,
    mgmt_fee_tokens: int = 0,
) -> Dict[int, int]:
    """Backing ratio each tier would produce, keyed by tier"""
    if current_supply == 0:
        raise DivideByZeroError("Cannot simulate APYs for zero supply")
    backing = {}
    for tier in sorted(APY_TIERS, reverse=True):
        projected = calculate_rebase_supply(
            current_supply, get_monthly_rate(tier), time_elapsed, mgmt_fee_tokens
        )
        backing[tier] = calculate_backing_ratio(net_vault_value, projected.new_supply)
    return backing


def calculate_new_index(old_index: int, tier: int, time_elapsed: int = SECONDS_PER_MONTH) -> int:
    return calculate_new_rebase_index(old_index, get_monthly_rate(tier), time_elapsed)
