"""
Wrapped-line cache: the output buffer projected through wrap_line().

The cache records the width it was built for and which pushes it has seen.
A single push at an unchanged width is applied in place: the new line is
wrapped and appended, and if the push evicted the oldest line, that line's
rows are dropped from the front. Anything else (resize, clear, several
pushes) rebuilds lazily.
"""
from __future__ import annotations

from collections import deque
from typing import NamedTuple

from .ringbuffer import LineBuffer
from .wrap import wrap_line


class WrappedLine(NamedTuple):
    text: str
    continuation: bool


def wrap_to_lines(line: str, width: int) -> list[WrappedLine]:
    return [WrappedLine(chunk, i > 0) for i, chunk in enumerate(wrap_line(line, width))]


class WrappedLineCache:
    def __init__(self, buffer: LineBuffer, width: int = 0) -> None:
        self._buffer = buffer
        self._width = width
        self._lines: list[WrappedLine] = []
        # wrapped row count of each buffered line, oldest first
        self._row_counts: deque[int] = deque()
        self._valid = False
        self._built_width = -1
        self._raw_count = 0
        self._pushed = 0
        self._generation = -1
        self.rebuilds = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def valid(self) -> bool:
        return (
            self._valid
            and self._built_width == self._width
            and self._raw_count == len(self._buffer)
            and self._pushed == self._buffer.total_pushed
            and self._generation == self._buffer.generation
        )

    def set_width(self, width: int) -> None:
        if width != self._width:
            self._width = width
            self.invalidate()

    def invalidate(self) -> None:
        self._valid = False
        self._lines = []
        self._row_counts = deque()

    def rebuild(self) -> None:
        lines: list[WrappedLine] = []
        row_counts: deque[int] = deque()
        for raw in self._buffer:
            wrapped = wrap_to_lines(raw, self._width)
            lines.extend(wrapped)
            row_counts.append(len(wrapped))
        self._lines = lines
        self._row_counts = row_counts
        self._built_width = self._width
        self._raw_count = len(self._buffer)
        self._pushed = self._buffer.total_pushed
        self._generation = self._buffer.generation
        self._valid = True
        self.rebuilds += 1

    def append_incremental(self, line: str) -> None:
        """
        Account for line having just been pushed onto the buffer.

        Wraps only the new line when it is the one push since the cache was
        built; a push that evicted the oldest line also drops that line's
        rows. Otherwise the cache is rebuilt from the buffer.
        """
        one_push = (
            self._valid
            and self._built_width == self._width
            and self._buffer.total_pushed == self._pushed + 1
            and self._generation == self._buffer.generation
        )
        grew = len(self._buffer) == self._raw_count + 1
        evicted = len(self._buffer) == self._raw_count and bool(self._row_counts)
        if not one_push or not (grew or evicted):
            self.rebuild()
            return

        if evicted:
            del self._lines[:self._row_counts.popleft()]
        wrapped = wrap_to_lines(line, self._width)
        self._lines.extend(wrapped)
        self._row_counts.append(len(wrapped))
        self._raw_count = len(self._buffer)
        self._pushed += 1

    @property
    def lines(self) -> list[WrappedLine]:
        if not self.valid:
            self.rebuild()
        return self._lines

    def __len__(self) -> int:
        return len(self.lines)

    def window(self, offset: int, height: int) -> list[WrappedLine]:
        """Lines visible in a viewport of height rows starting at offset."""
        if height <= 0:
            return []
        lines = self.lines
        offset = max(0, min(offset, len(lines)))
        return lines[offset:offset + height]
