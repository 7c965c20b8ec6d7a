"""Three-zone waterfall: zone classification, profit spillover and backstop

Zone 1 (SPILLOVER, backing > 110%): the excess above 110% leaves Senior,
80% to Junior and 20% to Reserve, leaving Senior at exactly 110%.
Zone 2 (HEALTHY, 100% <= backing <= 110%): nothing moves.
Zone 3 (BACKSTOP, backing < 100%): Senior is topped up to 100.9%, drawing
from Reserve first and Junior second.
"""
from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple

from ..constants import (
    SENIOR_TARGET_BACKING,
    SENIOR_TRIGGER_BACKING,
    SENIOR_RESTORE_BACKING,
    JUNIOR_SPILLOVER_SHARE,
)
from ..errors import DivideByZeroError, ValidationError
from .fixed_point import checked_sub, fp_min, mul_div


class Zone(IntEnum):
    BACKSTOP = 0
    HEALTHY = 1
    SPILLOVER = 2


@dataclass(frozen=True)
class ProfitSpillover:
    excess_amount: int
    to_junior: int
    to_reserve: int
    senior_final_value: int


@dataclass(frozen=True)
class BackstopResult:
    deficit_amount: int
    from_reserve: int
    from_junior: int
    senior_final_value: int
    fully_restored: bool

    @property
    def total_provided(self) -> int:
        return self.from_reserve + self.from_junior

    @property
    def shortfall(self) -> int:
        return self.deficit_amount - self.total_provided


def determine_zone(backing_ratio: int) -> Zone:
    """Classify a backing ratio; both 100% and 110% are HEALTHY"""
    if backing_ratio > SENIOR_TARGET_BACKING:
        return Zone.SPILLOVER
    if backing_ratio < SENIOR_TRIGGER_BACKING:
        return Zone.BACKSTOP
    return Zone.HEALTHY


def needs_profit_spillover(backing_ratio: int) -> bool:
    return backing_ratio > SENIOR_TARGET_BACKING


def needs_backstop(backing_ratio: int) -> bool:
    return backing_ratio < SENIOR_TRIGGER_BACKING


def is_healthy_buffer_zone(backing_ratio: int) -> bool:
    return SENIOR_TRIGGER_BACKING <= backing_ratio <= SENIOR_TARGET_BACKING


def calculate_zone_thresholds(supply: int) -> Tuple[int, int, int]:
    """Absolute (target, trigger, restore) values for a given Senior supply"""
    return (
        mul_div(supply, SENIOR_TARGET_BACKING),
        mul_div(supply, SENIOR_TRIGGER_BACKING),
        mul_div(supply, SENIOR_RESTORE_BACKING),
    )


def calculate_profit_spillover(net_value: int, supply: int) -> ProfitSpillover:
    """Split the value above the 110% target between Junior and Reserve.

    Junior's share is rounded down and Reserve takes the remainder, so
    to_junior + to_reserve == excess_amount exactly and Senior is left at
    exactly supply * 110%.
    """
    if supply == 0:
        raise DivideByZeroError("Cannot compute spillover for zero supply")
    target_value = mul_div(supply, SENIOR_TARGET_BACKING)
    if net_value <= target_value:
        raise ValidationError(
            f"No excess to spill: value {net_value} <= target {target_value}"
        )

    excess = net_value - target_value
    to_junior = mul_div(excess, JUNIOR_SPILLOVER_SHARE)
    to_reserve = excess - to_junior

    return ProfitSpillover(
        excess_amount=excess,
        to_junior=to_junior,
        to_reserve=to_reserve,
        senior_final_value=checked_sub(net_value, excess),
    )


def calculate_backstop(
    net_value: int,
    supply: int,
    reserve_value: int,
    junior_value: int,
) -> BackstopResult:
    """Draw the deficit to 100.9% from Reserve first, then Junior.

    Running out of Reserve and Junior capacity is not an error: the result
    carries fully_restored=False and a senior_final_value reflecting only
    what was available.
    """
    if supply == 0:
        raise DivideByZeroError("Cannot compute backstop for zero supply")
    restore_value = mul_div(supply, SENIOR_RESTORE_BACKING)
    if net_value >= restore_value:
        return BackstopResult(0, 0, 0, net_value, True)

    deficit = restore_value - net_value
    from_reserve = fp_min(deficit, reserve_value)
    from_junior = fp_min(deficit - from_reserve, junior_value)

    return BackstopResult(
        deficit_amount=deficit,
        from_reserve=from_reserve,
        from_junior=from_junior,
        senior_final_value=net_value + from_reserve + from_junior,
        fully_restored=from_reserve + from_junior == deficit,
    )
