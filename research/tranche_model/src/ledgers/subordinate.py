"""Junior (first-loss) and Reserve (secondary-loss) ledgers"""

from ..constants import RESERVE_DEPLETION_THRESHOLD
from ..errors import AuthorizationError, PeerNotConfiguredError, ValidationError
from ..libs.fixed_point import fp_min, lp_units_for, mul_div
from ..utils.logging import get_logger
from ..utils.transaction import atomic
from .base import BaseLedger

log = get_logger(__name__)


class SubordinateLedger(BaseLedger):
    """Ledger that absorbs Senior's spillover and funds its backstop.

    Only the configured Senior ledger may move value in or out through
    receive_spillover / provide_backstop.
    """

    def __init__(self, name: str, address: str, operator: str, clock=None):
        super().__init__(name, address, operator, clock)
        self.senior = None

    def set_senior(self, caller: str, senior) -> None:
        self._require_operator(caller)
        if senior is None:
            raise ValidationError("Senior ledger is required")
        self.senior = senior

    def _require_senior(self, caller: str) -> None:
        if self.senior is None:
            raise PeerNotConfiguredError(f"{self.address} has no Senior ledger configured")
        if caller != self.senior.address:
            raise AuthorizationError(f"{caller} is not the Senior ledger of {self.address}")

    def _require_month_end_caller(self, caller: str) -> None:
        if self.senior is not None and caller == self.senior.address:
            return
        self._require_operator(caller)

    def receive_spillover(self, caller: str, amount: int, lp_units: int = 0) -> None:
        self._require_senior(caller)
        with atomic(self._lock, "receive_spillover", self):
            self.state.value += amount
            self.state.lp_balance += lp_units
            self.state.total_spillover_received += amount
        log.info(f"{self.address}: received spillover {amount}")

    def provide_backstop(self, caller: str, amount: int, lp_price: int = 0) -> int:
        """Give up to `amount` of value to Senior; returns what was actually given"""
        self._require_senior(caller)
        with atomic(self._lock, "provide_backstop", self):
            state = self.state
            actual = fp_min(amount, state.value)
            state.lp_balance -= lp_units_for(actual, lp_price, state.lp_balance)
            state.value -= actual
            state.total_backstop_provided += actual
        if actual < amount:
            log.warning(f"{self.address}: backstop requested {amount}, provided {actual}")
        else:
            log.info(f"{self.address}: provided backstop {actual}")
        return actual


class JuniorLedger(SubordinateLedger):
    def __init__(self, address: str, operator: str, clock=None):
        super().__init__("junior", address, operator, clock)


class ReserveLedger(SubordinateLedger):
    def __init__(self, address: str, operator: str, clock=None):
        super().__init__("reserve", address, operator, clock)

    def is_depleted(self) -> bool:
        """Value below 1% of last month's value; health signal only"""
        state = self.state
        if not state.last_month_value_initialized:
            return False
        return state.value < mul_div(state.last_month_value, RESERVE_DEPLETION_THRESHOLD)

    def provide_backstop(self, caller: str, amount: int, lp_price: int = 0) -> int:
        actual = super().provide_backstop(caller, amount, lp_price)
        if self.is_depleted():
            log.warning(f"{self.address}: reserve depleted (value={self.state.value})")
        return actual
