"""
Scroll controller for the output stream and file tabs.

ScrollState is immutable; every navigation returns a new state. The output
stream is either tailing (pinned to the newest line) or browsing (pinned to
an offset the user chose). Tailing holds exactly when the offset equals the
maximum offset, and the maximum is 0 whenever all content fits.
"""
from __future__ import annotations

from dataclasses import dataclass


def max_offset(total: int, viewport: int) -> int:
    return max(0, total - max(0, viewport))


@dataclass(frozen=True)
class ScrollState:
    tailing: bool = True
    offset: int = 0

    @classmethod
    def at_bottom(cls, total: int, viewport: int) -> "ScrollState":
        return cls(tailing=True, offset=max_offset(total, viewport))

    def _browse(self, offset: int, total: int, viewport: int) -> "ScrollState":
        top = max_offset(total, viewport)
        offset = max(0, min(offset, top))
        if offset >= top:
            return ScrollState(tailing=True, offset=top)
        return ScrollState(tailing=False, offset=offset)

    def scroll_up(self, total: int, viewport: int, lines: int = 1) -> "ScrollState":
        top = max_offset(total, viewport)
        if top == 0:
            return ScrollState(tailing=True, offset=0)
        start = top if self.tailing else self.offset
        return self._browse(start - max(1, lines), total, viewport)

    def scroll_down(self, total: int, viewport: int, lines: int = 1) -> "ScrollState":
        if self.tailing:
            return ScrollState.at_bottom(total, viewport)
        return self._browse(self.offset + max(1, lines), total, viewport)

    def page_up(self, total: int, viewport: int) -> "ScrollState":
        return self.scroll_up(total, viewport, lines=viewport)

    def page_down(self, total: int, viewport: int) -> "ScrollState":
        return self.scroll_down(total, viewport, lines=viewport)

    def home(self, total: int, viewport: int) -> "ScrollState":
        return self._browse(0, total, viewport)

    def end(self, total: int, viewport: int) -> "ScrollState":
        return ScrollState.at_bottom(total, viewport)

    def reconcile(self, total: int, viewport: int) -> "ScrollState":
        """Re-establish the invariants after content arrived or the viewport resized."""
        if self.tailing:
            return ScrollState.at_bottom(total, viewport)
        return self._browse(self.offset, total, viewport)


# ─────────────────────────────────────────────────────────────────────────────
# File tabs: a bare offset per file, no tailing
# ─────────────────────────────────────────────────────────────────────────────

def clamp_file_offset(offset: int, line_count: int, viewport: int) -> int:
    return max(0, min(offset, max_offset(line_count, viewport)))


def scroll_file(offset: int, delta: int, line_count: int, viewport: int) -> int:
    return clamp_file_offset(offset + delta, line_count, viewport)
