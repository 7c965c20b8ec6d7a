"""Clocks used for every time gate (rebase interval, cooldown, deposit expiry)"""
import time


class SystemClock:
    """Wall clock in whole seconds"""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to; used by simulations and tests"""

    def __init__(self, start: int = 1_700_000_000):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("Clock cannot move backwards")
        self._now = timestamp
