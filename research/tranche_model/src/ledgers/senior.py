"""Senior ledger: rebasing supply backed by Junior and Reserve"""
from typing import Dict, List, Optional, Protocol, Tuple

from ..constants import DEFAULT_MIN_REBASE_INTERVAL
from ..errors import DepositCapExceededError, ValidationError
from ..instructions.rebase import RebaseReport, execute_rebase
from ..libs.apy_selector import simulate_all_apys
from ..libs.fixed_point import (
    calculate_backing_ratio,
    calculate_balance_from_shares,
    calculate_deposit_cap,
    calculate_shares_from_balance,
)
from ..libs.waterfall import Zone, calculate_zone_thresholds, determine_zone
from ..utils.logging import get_logger
from ..utils.transaction import atomic
from .base import BaseLedger

log = get_logger(__name__)


class BackstopProvider(Protocol):
    """Capability Senior needs from each peer ledger"""
    address: str

    @property
    def value(self) -> int: ...

    @property
    def lp_balance(self) -> int: ...

    def receive_spillover(self, caller: str, amount: int, lp_units: int = 0) -> None: ...

    def provide_backstop(self, caller: str, amount: int, lp_price: int = 0) -> int: ...

    def record_month_end(self, caller: str) -> None: ...


class SeniorLedger(BaseLedger):
    """Senior tranche. Holder balances grow through the rebase index while
    share counts stay fixed; backing is policed by the three-zone waterfall.
    """

    def __init__(
        self,
        address: str,
        operator: str,
        clock=None,
        min_rebase_interval: int = DEFAULT_MIN_REBASE_INTERVAL,
    ):
        super().__init__("senior", address, operator, clock)
        self.min_rebase_interval = min_rebase_interval
        self.junior: Optional[BackstopProvider] = None
        self.reserve: Optional[BackstopProvider] = None

    def configure_peers(self, caller: str, junior: BackstopProvider, reserve: BackstopProvider) -> None:
        self._require_operator(caller)
        if junior is None or reserve is None:
            raise ValidationError("Both Junior and Reserve ledgers are required")
        self.junior = junior
        self.reserve = reserve
        log.info(f"{self.address}: peers set junior={junior.address} reserve={reserve.address}")

    def set_min_rebase_interval(self, caller: str, seconds: int) -> None:
        self._require_operator(caller)
        if seconds <= 0:
            raise ValidationError("Minimum rebase interval must be positive")
        self.min_rebase_interval = seconds

    # -- share pricing through the rebase index --

    def total_supply(self) -> int:
        return calculate_balance_from_shares(self.state.total_shares, self.state.rebase_index)

    def _shares_for_value(self, amount: int) -> int:
        return calculate_shares_from_balance(amount, self.state.rebase_index)

    def _value_of_shares(self, shares: int) -> int:
        return calculate_balance_from_shares(shares, self.state.rebase_index)

    def _before_issue(self, amount: int) -> None:
        cap = self.deposit_cap()
        if cap is not None and self.total_supply() + amount > cap:
            raise DepositCapExceededError(
                f"Senior supply would exceed cap {cap} (reserve value x 10)"
            )

    # -- views --

    def deposit_cap(self) -> Optional[int]:
        if self.reserve is None:
            return None
        return calculate_deposit_cap(self.reserve.value)

    def backing_ratio(self) -> int:
        return calculate_backing_ratio(self.state.value, self.total_supply())

    def current_zone(self) -> Zone:
        return determine_zone(self.backing_ratio())

    def zone_thresholds(self) -> Tuple[int, int, int]:
        return calculate_zone_thresholds(self.total_supply())

    def simulate_all_apys(self) -> Dict[int, int]:
        return simulate_all_apys(self.total_supply(), self.state.value)

    # -- rebase --

    def _rebase_participants(self) -> List:
        """Ledgers, their deposit registries and sinks touched by a rebase, once each"""
        participants = []
        for ledger in (self, self.junior, self.reserve):
            if ledger is None:
                continue
            participants.append(ledger)
            registry = getattr(ledger, "deposits", None)
            if registry is not None:
                participants.extend(p for p in registry._participants() if p is not ledger)
        unique = {}
        for participant in participants:
            if participant is not None:
                unique.setdefault(id(participant), participant)
        return list(unique.values())

    def rebase(self, caller: str, lp_price: int = 0) -> RebaseReport:
        self._require_operator(caller)
        with atomic(self._lock, "rebase", *self._rebase_participants()):
            return execute_rebase(self, lp_price)
