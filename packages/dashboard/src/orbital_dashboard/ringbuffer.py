"""
Bounded line buffer.

A fixed-capacity FIFO of output lines backed by a circular list. Pushing
onto a full buffer overwrites the oldest line. Index 0 is always the
oldest line currently held.
"""
from __future__ import annotations

from typing import Callable, Iterator

from .config import DEFAULT_MAX_OUTPUT_LINES


class LineBuffer:
    """Circular buffer of strings with O(1) push and indexed reads."""

    __slots__ = ("_items", "_head", "_count", "_pushed", "_generation")

    def __init__(self, capacity: int = DEFAULT_MAX_OUTPUT_LINES) -> None:
        if capacity <= 0:
            capacity = DEFAULT_MAX_OUTPUT_LINES
        self._items: list[str] = [""] * capacity
        self._head = 0      # physical index of the oldest line
        self._count = 0
        self._pushed = 0    # lines ever pushed since the last clear()
        self._generation = 0

    @property
    def capacity(self) -> int:
        return len(self._items)

    @property
    def total_pushed(self) -> int:
        """Number of pushes since construction or the last clear()."""
        return self._pushed

    @property
    def generation(self) -> int:
        """Bumped by every clear()."""
        return self._generation

    @property
    def evicted(self) -> int:
        """Number of lines discarded by overflow since the last clear()."""
        return self._pushed - self._count

    def __len__(self) -> int:
        return self._count

    def push(self, line: str) -> None:
        cap = len(self._items)
        if self._count < cap:
            self._items[(self._head + self._count) % cap] = line
            self._count += 1
        else:
            self._items[self._head] = line
            self._head = (self._head + 1) % cap
        self._pushed += 1

    def get(self, index: int) -> str:
        """Line at logical index (0 = oldest), or "" when out of range."""
        if index < 0 or index >= self._count:
            return ""
        return self._items[(self._head + index) % len(self._items)]

    def __getitem__(self, index: int) -> str:
        return self.get(index)

    def __iter__(self) -> Iterator[str]:
        cap = len(self._items)
        for i in range(self._count):
            yield self._items[(self._head + i) % cap]

    def iterate(self, visit: Callable[[int, str], bool]) -> None:
        """Walk oldest to newest; stop as soon as visit returns False."""
        for i, line in enumerate(self):
            if not visit(i, line):
                return

    def to_list(self) -> list[str]:
        return list(self)

    def last(self) -> str:
        return self.get(self._count - 1)

    def clear(self) -> None:
        """Drop every line, keeping the capacity."""
        self._items = [""] * len(self._items)
        self._head = 0
        self._count = 0
        self._pushed = 0
        self._generation += 1
