"""Behaviour shared by the Senior, Junior and Reserve ledgers"""
import copy
from typing import List

from ..errors import AuthorizationError, StateError, ValidationError
from ..libs.fee_engine import calculate_withdrawal_fee, calculate_withdrawal_penalty
from ..libs.fixed_point import checked_sub, mul_div
from ..state.tranche_state import TrancheState
from ..instructions.update_value import update_value
from ..deposits.registry import PendingDepositRegistry
from ..utils.clock import SystemClock
from ..utils.logging import get_logger
from ..utils.transaction import ReentrancyLock, atomic

log = get_logger(__name__)


class BaseLedger:
    """One tranche: value, shares and an operator principal.

    Share pricing is left to subclasses: Senior prices shares through its
    rebase index, Junior and Reserve pro rata to their value.
    """

    def __init__(self, name: str, address: str, operator: str, clock=None):
        if not address or not operator:
            raise ValidationError("Ledger address and operator are required")
        self.address = address
        self.operator = operator
        self.operator_history: List[str] = [operator]
        self.clock = clock or SystemClock()
        self.state = TrancheState(name=name)
        self.deposits = PendingDepositRegistry(self)
        self._lock = ReentrancyLock()

    def __repr__(self):
        return f"{type(self).__name__}(address={self.address!r}, value={self.state.value})"

    # -- snapshot / restore for atomic operations --

    def snapshot(self) -> TrancheState:
        return copy.deepcopy(self.state)

    def restore(self, snap: TrancheState) -> None:
        self.state = snap

    # -- operator capability --

    def _require_operator(self, caller: str) -> None:
        if caller != self.operator:
            raise AuthorizationError(f"{caller} is not the operator of {self.address}")

    def transfer_operator(self, caller: str, new_operator: str) -> None:
        """One-step operator hand-over, kept in operator_history"""
        self._require_operator(caller)
        if not new_operator:
            raise ValidationError("New operator must be non-empty")
        self.operator = new_operator
        self.operator_history.append(new_operator)
        log.info(f"{self.address}: operator transferred {caller} -> {new_operator}")

    # -- views --

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def value(self) -> int:
        return self.state.value

    @property
    def lp_balance(self) -> int:
        return self.state.lp_balance

    def total_supply(self) -> int:
        return self.state.total_shares

    def shares_of(self, holder: str) -> int:
        return self.state.shares.get(holder, 0)

    def balance_of(self, holder: str) -> int:
        return self._value_of_shares(self.shares_of(holder))

    # -- share pricing (overridden by SeniorLedger) --

    def _shares_for_value(self, amount: int) -> int:
        state = self.state
        if state.total_shares == 0 or state.value == 0:
            return amount
        return mul_div(amount, state.total_shares, state.value)

    def _value_of_shares(self, shares: int) -> int:
        state = self.state
        if state.total_shares == 0:
            return 0
        return mul_div(shares, state.value, state.total_shares)

    def _before_issue(self, amount: int) -> None:
        """Hook for admission limits on new value (Senior deposit cap)"""

    def _issue_shares(self, holder: str, amount: int, lp_units: int = 0) -> int:
        """Mint shares worth `amount` of value to holder and book the value"""
        self._before_issue(amount)
        shares = self._shares_for_value(amount)
        if shares == 0:
            raise ValidationError("Deposit too small to mint shares")
        self.state.credit_shares(holder, shares)
        self.state.value += amount
        self.state.lp_balance += lp_units
        return shares

    # -- operator value management --

    def update_value(self, caller: str, signed_bps: int) -> int:
        self._require_operator(caller)
        with atomic(self._lock, "update_value", self):
            old_value, new_value = update_value(self.state, signed_bps)
        log.info(f"{self.address}: value {old_value} -> {new_value} ({signed_bps:+d} bps)")
        return new_value

    def mark_to_market(self, caller: str, lp_price: int) -> int:
        """Re-value the ledger from its LP holdings at an operator price"""
        self._require_operator(caller)
        if lp_price <= 0:
            raise ValidationError("LP price must be positive")
        with atomic(self._lock, "mark_to_market", self):
            if self.state.lp_balance == 0:
                raise StateError(f"{self.address} holds no LP units to mark")
            self.state.value = mul_div(self.state.lp_balance, lp_price)
        return self.state.value

    def record_month_end(self, caller: str) -> None:
        self._require_month_end_caller(caller)
        self.state.last_month_value = self.state.value
        self.state.month_snapshots += 1

    def _require_month_end_caller(self, caller: str) -> None:
        self._require_operator(caller)

    # -- holder surface --

    def deposit(self, caller: str, amount: int) -> int:
        if amount <= 0:
            raise ValidationError("Deposit amount must be positive")
        with atomic(self._lock, "deposit", self):
            shares = self._issue_shares(caller, amount)
        log.info(f"{self.address}: {caller} deposited {amount} for {shares} shares")
        return shares

    def initiate_cooldown(self, caller: str) -> int:
        if self.shares_of(caller) == 0:
            raise StateError(f"{caller} holds no shares in {self.address}")
        now = self.clock.now()
        self.state.cooldowns[caller] = now
        return now

    def withdraw(self, caller: str, amount: int) -> int:
        """Burn shares worth `amount` and return the net payout.

        The early-withdrawal penalty stays in the ledger for the remaining
        holders; the standing withdrawal fee is booked to fees_collected.
        """
        if amount <= 0:
            raise ValidationError("Withdrawal amount must be positive")
        with atomic(self._lock, "withdraw", self):
            state = self.state
            balance = self.balance_of(caller)
            if amount > balance:
                raise ValidationError(f"Withdrawal {amount} exceeds balance {balance}")

            held = self.shares_of(caller)
            burned = held if amount == balance else min(held, self._shares_for_withdrawal(amount))
            penalty = calculate_withdrawal_penalty(
                amount, state.cooldowns.get(caller, 0), self.clock.now()
            )
            fee = calculate_withdrawal_fee(penalty.net_amount)
            payout = penalty.net_amount - fee
            outflow = payout + fee
            if outflow > state.value:
                raise StateError(f"{self.address} value cannot cover withdrawal of {outflow}")

            if state.lp_balance:
                state.lp_balance -= mul_div(state.lp_balance, outflow, state.value)
            state.debit_shares(caller, burned)
            state.value = checked_sub(state.value, outflow)
            state.fees_collected += fee
            state.cooldowns.pop(caller, None)

        log.info(
            f"{self.address}: {caller} withdrew {amount} "
            f"(penalty={penalty.penalty}, fee={fee}, payout={payout})"
        )
        return payout

    def _shares_for_withdrawal(self, amount: int) -> int:
        return self._shares_for_value(amount)
