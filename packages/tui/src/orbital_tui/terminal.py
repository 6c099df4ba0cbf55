"""
Terminal abstraction.

Provides:
- Terminal: abstract base class (interface)
- ProcessTerminal: real terminal using sys.stdin/sys.stdout in raw mode,
  on the alternate screen, with SGR mouse reporting
"""
from __future__ import annotations

import logging
import os
import select
import signal
import sys
import threading
from abc import ABC, abstractmethod
from typing import Callable

from .stdin_buffer import StdinBuffer

logger = logging.getLogger(__name__)

ALT_SCREEN_ON = "\x1b[?1049h"
ALT_SCREEN_OFF = "\x1b[?1049l"
# 1000: button press/release (wheel included), 1006: SGR extended coordinates
MOUSE_ON = "\x1b[?1000h\x1b[?1006h"
MOUSE_OFF = "\x1b[?1006l\x1b[?1000l"
SYNC_BEGIN = "\x1b[?2026h"
SYNC_END = "\x1b[?2026l"

# ─────────────────────────────────────────────────────────────────────────────
# Terminal ABC
# ─────────────────────────────────────────────────────────────────────────────

class Terminal(ABC):
    """Minimal full-screen terminal interface."""

    @abstractmethod
    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        """Start the terminal with input and resize handlers.

        Handlers may be called from a background thread.
        """

    @abstractmethod
    def stop(self) -> None:
        """Stop the terminal and restore state."""

    @abstractmethod
    def write(self, data: str) -> None:
        """Write output to the terminal."""

    @property
    @abstractmethod
    def columns(self) -> int:
        """Terminal width in columns."""

    @property
    @abstractmethod
    def rows(self) -> int:
        """Terminal height in rows."""

    def move_to(self, row: int, col: int = 0) -> None:
        """Move cursor to a 0-based position."""
        self.write(f"\x1b[{row + 1};{col + 1}H")

    def hide_cursor(self) -> None:
        self.write("\x1b[?25l")

    def show_cursor(self) -> None:
        self.write("\x1b[?25h")

    def clear_screen(self) -> None:
        """Clear entire screen and move cursor to (0,0)."""
        self.write("\x1b[2J\x1b[H")

    def set_title(self, title: str) -> None:
        self.write(f"\x1b]0;{title}\x07")


# ─────────────────────────────────────────────────────────────────────────────
# ProcessTerminal
# ─────────────────────────────────────────────────────────────────────────────

class ProcessTerminal(Terminal):
    """
    Real terminal using sys.stdin/sys.stdout.
    Enables raw mode, the alternate screen and mouse reporting; input is read
    on a daemon thread and split into sequences by StdinBuffer.
    """

    def __init__(self, mouse: bool = True) -> None:
        self._mouse = mouse
        self._input_handler: Callable[[str], None] | None = None
        self._stdin_buffer: StdinBuffer | None = None
        self._old_termios: list | None = None
        self._prev_sigwinch = None
        self._read_thread: threading.Thread | None = None

    def start(
        self,
        on_input: Callable[[str], None],
        on_resize: Callable[[], None],
    ) -> None:
        self._input_handler = on_input
        self._enable_raw_mode()

        out = ALT_SCREEN_ON
        if self._mouse:
            out += MOUSE_ON
        self.write(out)

        if hasattr(signal, "SIGWINCH"):
            self._prev_sigwinch = signal.signal(signal.SIGWINCH, lambda *_: on_resize())

        self._stdin_buffer = StdinBuffer(timeout_ms=10, on_data=self._dispatch)
        self._read_thread = threading.Thread(target=self._read_loop, name="stdin-reader", daemon=True)
        self._read_thread.start()

    def _dispatch(self, sequence: str) -> None:
        handler = self._input_handler
        if handler:
            handler(sequence)

    def _read_loop(self) -> None:
        fd = sys.stdin.fileno()
        while self._stdin_buffer is not None:
            try:
                ready, _, _ = select.select([fd], [], [], 0.05)
                if not ready:
                    continue
                data = os.read(fd, 1024)
            except (OSError, ValueError):
                break
            if not data:
                break
            buf = self._stdin_buffer
            if buf:
                buf.process(data)

    def _enable_raw_mode(self) -> None:
        """Put stdin in raw mode (no echo, no line buffering)."""
        import termios
        import tty

        if not sys.stdin.isatty():
            return
        fd = sys.stdin.fileno()
        self._old_termios = termios.tcgetattr(fd)
        tty.setraw(fd)

    def _disable_raw_mode(self) -> None:
        import termios

        if self._old_termios is None:
            return
        try:
            termios.tcsetattr(sys.stdin.fileno(), termios.TCSADRAIN, self._old_termios)
        except termios.error:
            logger.warning("Could not restore terminal attributes", exc_info=True)
        self._old_termios = None

    def stop(self) -> None:
        """Leave the alternate screen, disable mouse, restore handlers and tty mode."""
        if self._stdin_buffer:
            self._stdin_buffer.destroy()
            self._stdin_buffer = None
        self._input_handler = None

        if self._prev_sigwinch is not None:
            signal.signal(signal.SIGWINCH, self._prev_sigwinch)
            self._prev_sigwinch = None

        out = ""
        if self._mouse:
            out += MOUSE_OFF
        out += "\x1b[0m\x1b[?25h" + ALT_SCREEN_OFF
        self.write(out)
        self._disable_raw_mode()

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        sys.stdout.flush()

    @property
    def columns(self) -> int:
        try:
            return os.get_terminal_size().columns
        except OSError:
            return int(os.environ.get("COLUMNS", "80"))

    @property
    def rows(self) -> int:
        try:
            return os.get_terminal_size().lines
        except OSError:
            return int(os.environ.get("LINES", "24"))
