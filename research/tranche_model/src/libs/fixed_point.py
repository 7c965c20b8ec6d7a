"""Fixed point arithmetic on 1e18-scaled unsigned integers

All amounts, ratios and rates in the model are plain ints scaled by
PRECISION. Multiplication always happens before division so truncation
only ever loses the final fractional unit.
"""
from decimal import Decimal
from typing import Optional, Union

from ..constants import (
    PRECISION,
    BPS_DENOMINATOR,
    DEPOSIT_CAP_MULTIPLIER,
    MAX_UINT256,
)
from ..errors import ArithmeticError, DivideByZeroError, OutOfRangeError


def checked_add(a: int, b: int) -> int:
    """Add with overflow checking"""
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticError("Arithmetic overflow in addition")
    return result

def checked_sub(a: int, b: int) -> int:
    """Subtract with underflow checking"""
    if b > a:
        raise ArithmeticError("Arithmetic underflow in subtraction")
    return a - b

def checked_mul(a: int, b: int) -> int:
    """Multiply with overflow checking"""
    result = a * b
    if result > MAX_UINT256:
        raise ArithmeticError("Arithmetic overflow in multiplication")
    return result

def checked_div(a: int, b: int) -> int:
    """Divide with zero checking"""
    if b == 0:
        raise DivideByZeroError("Division by zero")
    return a // b


def mul_div(a: int, factor: int, denominator: int = PRECISION) -> int:
    """a * factor / denominator, rounded down"""
    return checked_div(checked_mul(a, factor), denominator)


def apply_percentage(value: int, signed_bps: int) -> int:
    """Add (positive bps) or subtract (negative bps) a percentage of value.

    A decrease larger than 100% would take the value below zero and is
    rejected with OutOfRangeError.
    """
    if signed_bps < 0:
        magnitude = -signed_bps
        if magnitude > BPS_DENOMINATOR:
            raise OutOfRangeError(f"Percentage decrease {signed_bps} bps exceeds 100%")
        return checked_sub(value, mul_div(value, magnitude, BPS_DENOMINATOR))
    return checked_add(value, mul_div(value, signed_bps, BPS_DENOMINATOR))


def calculate_backing_ratio(value: int, supply: int) -> int:
    """Backing ratio value / supply, scaled by PRECISION (1e18 == 100%)"""
    if supply == 0:
        raise DivideByZeroError("Backing ratio undefined for zero supply")
    return checked_mul(value, PRECISION) // supply


def calculate_balance_from_shares(shares: int, rebase_index: int) -> int:
    # balance = shares * index / PRECISION
    return checked_mul(shares, rebase_index) // PRECISION


def calculate_shares_from_balance(balance: int, rebase_index: int) -> int:
    # shares = balance * PRECISION / index
    if rebase_index == 0:
        raise DivideByZeroError("Rebase index is zero")
    return checked_mul(balance, PRECISION) // rebase_index


def calculate_deposit_cap(reserve_value: int) -> int:
    return checked_mul(reserve_value, DEPOSIT_CAP_MULTIPLIER)


def fp_min(a: int, b: int) -> int:
    return a if a < b else b


def fp_max(a: int, b: int) -> int:
    return a if a > b else b


def to_fixed(amount: Union[int, float, str, Decimal]) -> int:
    """Convert a human amount (e.g. "1.5") to a PRECISION-scaled int"""
    return int(Decimal(str(amount)) * PRECISION)


def from_fixed(amount: int) -> float:
    """Convert a PRECISION-scaled int to a float for display"""
    return float(Decimal(amount) / Decimal(PRECISION))


def lp_units_for(amount: int, lp_price: int, available: Optional[int] = None) -> int:
    """LP units worth `amount` of value at lp_price, capped at `available`"""
    if lp_price <= 0:
        return 0
    units = checked_mul(amount, PRECISION) // lp_price
    if available is not None:
        units = fp_min(units, available)
    return units
