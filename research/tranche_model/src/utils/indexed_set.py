"""Ordered set with O(1) membership and swap-remove"""
from typing import Dict, Hashable, Iterator, List


class IndexedSet:
    """Compact list of members plus a member -> position lookup.

    Removal swaps the last member into the freed slot, so order is only
    stable until the first removal.
    """

    def __init__(self, items=()):
        self._items: List[Hashable] = []
        self._positions: Dict[Hashable, int] = {}
        for item in items:
            self.add(item)

    def add(self, item) -> bool:
        if item in self._positions:
            return False
        self._positions[item] = len(self._items)
        self._items.append(item)
        return True

    def remove(self, item) -> bool:
        index = self._positions.pop(item, None)
        if index is None:
            return False
        last = self._items.pop()
        if index < len(self._items):
            self._items[index] = last
            self._positions[last] = index
        return True

    def at(self, index: int):
        return self._items[index]

    def to_list(self) -> List[Hashable]:
        return list(self._items)

    def __contains__(self, item) -> bool:
        return item in self._positions

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._items))
