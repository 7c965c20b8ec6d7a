"""Tests for all-or-nothing execution and the reentrancy lock"""
import pytest

from tranche_model.src.errors import ReentrancyError
from tranche_model.src.utils.transaction import ReentrancyLock, atomic


class Counter:
    def __init__(self, value=0):
        self.value = value

    def snapshot(self):
        return self.value

    def restore(self, snap):
        self.value = snap


def test_successful_operation_keeps_changes():
    lock = ReentrancyLock()
    counter = Counter()
    with atomic(lock, "increment", counter):
        counter.value += 5
    assert counter.value == 5
    assert not lock.locked


def test_failure_restores_every_participant():
    lock = ReentrancyLock()
    first, second = Counter(1), Counter(2)
    with pytest.raises(RuntimeError):
        with atomic(lock, "move", first, None, second):
            first.value = 100
            second.value = 200
            raise RuntimeError("boom")
    assert (first.value, second.value) == (1, 2)
    assert not lock.locked


def test_nested_entry_is_rejected():
    lock = ReentrancyLock()
    counter = Counter()
    with pytest.raises(ReentrancyError):
        with atomic(lock, "outer", counter):
            counter.value = 9
            with atomic(lock, "inner", counter):
                pass
    assert counter.value == 0
    assert not lock.locked
