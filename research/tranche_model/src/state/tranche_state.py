"""Per-ledger tranche state"""
from dataclasses import dataclass, field
from typing import Dict
from ..constants import PRECISION
from ..errors import StateError


@dataclass
class TrancheState:
    """Value, share and rebase bookkeeping of one ledger.

    Balances are derived, never stored: balance = shares * rebase_index / PRECISION.
    Only Senior moves rebase_index, epoch and last_rebase_time; for Junior
    and Reserve the index stays at PRECISION.
    """
    name: str
    value: int = 0
    last_month_value: int = 0
    month_snapshots: int = 0
    total_shares: int = 0
    shares: Dict[str, int] = field(default_factory=dict)
    rebase_index: int = PRECISION  # Start at 1.0 scaled
    epoch: int = 0
    last_rebase_time: int = 0
    lp_balance: int = 0  # LP units backing the value when marked from holdings
    total_spillover_received: int = 0
    total_backstop_provided: int = 0
    fees_collected: int = 0
    cooldowns: Dict[str, int] = field(default_factory=dict)

    @property
    def last_month_value_initialized(self) -> bool:
        # The first month-end write only seeds the baseline
        return self.month_snapshots >= 2

    def credit_shares(self, holder: str, amount: int) -> None:
        self.shares[holder] = self.shares.get(holder, 0) + amount
        self.total_shares += amount

    def debit_shares(self, holder: str, amount: int) -> None:
        held = self.shares.get(holder, 0)
        if amount > held:
            raise StateError(f"{holder} holds {held} shares, cannot debit {amount}")
        remaining = held - amount
        if remaining:
            self.shares[holder] = remaining
        else:
            self.shares.pop(holder, None)
        self.total_shares -= amount
