"""Operator value adjustment, bounded per call"""
from typing import Tuple
from ..state.tranche_state import TrancheState
from ..errors import OutOfRangeError
from ..libs.fixed_point import apply_percentage
from ..constants import MAX_VALUE_INCREASE_BPS, MAX_VALUE_DECREASE_BPS


def update_value(state: TrancheState, signed_bps: int) -> Tuple[int, int]:
    """Move state.value by signed_bps, limited to [-50%, +100%] per call.

    Returns (old_value, new_value).
    """
    if signed_bps > MAX_VALUE_INCREASE_BPS or signed_bps < -MAX_VALUE_DECREASE_BPS:
        raise OutOfRangeError(
            f"Value change {signed_bps} bps outside "
            f"[-{MAX_VALUE_DECREASE_BPS}, +{MAX_VALUE_INCREASE_BPS}]"
        )
    old_value = state.value
    state.value = apply_percentage(old_value, signed_bps)
    return old_value, state.value
