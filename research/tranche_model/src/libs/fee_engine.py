"""Fee math: management fee streaming, performance fee, withdrawal penalty
and rebase compounding"""
from dataclasses import dataclass

from ..constants import (
    PRECISION,
    MGMT_FEE_ANNUAL,
    PERF_FEE,
    EARLY_WITHDRAWAL_PENALTY,
    WITHDRAWAL_FEE,
    COOLDOWN_PERIOD,
    SECONDS_PER_MONTH,
    SECONDS_PER_YEAR,
)
from .fixed_point import checked_add, checked_div, checked_mul, mul_div


@dataclass(frozen=True)
class RebaseSupply:
    new_supply: int
    user_tokens: int
    fee_tokens: int
    mgmt_fee_tokens: int = 0


@dataclass(frozen=True)
class WithdrawalPenalty:
    penalty: int
    net_amount: int


def calculate_management_fee(vault_value: int) -> int:
    """One month of the 1% annual management fee"""
    return checked_div(checked_mul(vault_value, MGMT_FEE_ANNUAL), 12 * PRECISION)


def calculate_management_fee_tokens(vault_value: int, time_elapsed: int) -> int:
    """Management fee streamed over an arbitrary elapsed time (seconds)"""
    return checked_div(
        checked_mul(checked_mul(vault_value, MGMT_FEE_ANNUAL), time_elapsed),
        SECONDS_PER_YEAR * PRECISION,
    )


def calculate_performance_fee(user_accrued_tokens: int) -> int:
    return mul_div(user_accrued_tokens, PERF_FEE)


def calculate_withdrawal_fee(amount: int) -> int:
    return mul_div(amount, WITHDRAWAL_FEE)


def calculate_withdrawal_penalty(
    amount: int,
    cooldown_start: int,
    current_time: int,
) -> WithdrawalPenalty:
    """20% penalty unless a cooldown was started at least 7 days ago"""
    if cooldown_start != 0 and current_time - cooldown_start >= COOLDOWN_PERIOD:
        return WithdrawalPenalty(penalty=0, net_amount=amount)
    penalty = mul_div(amount, EARLY_WITHDRAWAL_PENALTY)
    return WithdrawalPenalty(penalty=penalty, net_amount=amount - penalty)


def calculate_rebase_supply(
    current_supply: int,
    monthly_rate: int,
    time_elapsed: int = SECONDS_PER_MONTH,
    mgmt_fee_tokens: int = 0,
) -> RebaseSupply:
    """Project Senior supply after one rebase.

    S_new = S + S_users + S_fee + S_mgmt, where S_users is the monthly
    growth (pro-rated by time_elapsed) and S_fee the 2% performance fee on it.
    """
    user_tokens = checked_div(
        checked_mul(checked_mul(current_supply, monthly_rate), time_elapsed),
        SECONDS_PER_MONTH * PRECISION,
    )
    fee_tokens = calculate_performance_fee(user_tokens)
    new_supply = checked_add(
        checked_add(current_supply, user_tokens),
        checked_add(fee_tokens, mgmt_fee_tokens),
    )
    return RebaseSupply(new_supply, user_tokens, fee_tokens, mgmt_fee_tokens)


def calculate_new_rebase_index(
    old_index: int,
    monthly_rate: int,
    time_elapsed: int = SECONDS_PER_MONTH,
) -> int:
    """I_new = I_old * (1 + r_month * 1.02 * elapsed / month)"""
    gross_rate = mul_div(monthly_rate, PRECISION + PERF_FEE)
    growth = checked_div(checked_mul(gross_rate, time_elapsed), SECONDS_PER_MONTH)
    return mul_div(old_index, PRECISION + growth)
