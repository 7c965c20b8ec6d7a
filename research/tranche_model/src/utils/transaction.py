"""All-or-nothing execution of a public operation

Every participant exposes snapshot()/restore(). If the operation raises,
each participant is put back to its snapshot and the error propagates, so
no partial waterfall distribution is ever left behind. The owner's lock
rejects a nested call into an operation that is still running.
"""
from contextlib import contextmanager

from ..errors import ReentrancyError


class ReentrancyLock:
    def __init__(self):
        self._active = None

    @property
    def locked(self) -> bool:
        return self._active is not None

    def acquire(self, operation: str) -> None:
        if self._active is not None:
            raise ReentrancyError(
                f"Cannot enter {operation} while {self._active} is in progress"
            )
        self._active = operation

    def release(self) -> None:
        self._active = None


@contextmanager
def atomic(lock: ReentrancyLock, operation: str, *participants):
    lock.acquire(operation)
    try:
        snapshots = [(p, p.snapshot()) for p in participants if p is not None]
        try:
            yield
        except Exception:
            for participant, snap in reversed(snapshots):
                participant.restore(snap)
            raise
    finally:
        lock.release()
