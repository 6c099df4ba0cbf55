"""
StdinBuffer: splits raw terminal input into complete key and mouse sequences.

A single read from stdin may carry several keys ("jjj"), a mouse report cut in
half, or a lone ESC that is either the Escape key or the start of a sequence.
Complete sequences are emitted immediately; an incomplete tail is held until
more input arrives or a short timer flushes it as-is.
"""
from __future__ import annotations

import re
import threading
from typing import Callable

ESC = "\x1b"

_SGR_MOUSE_TAIL_RE = re.compile(r"^<\d+;\d+;\d+[Mm]$")

COMPLETE = "complete"
INCOMPLETE = "incomplete"
NOT_ESCAPE = "not-escape"


# ─────────────────────────────────────────────────────────────────────────────
# Sequence completeness detection
# ─────────────────────────────────────────────────────────────────────────────

def _csi_status(data: str) -> str:
    payload = data[2:]
    if not payload:
        return INCOMPLETE
    if payload.startswith("<"):
        # SGR mouse: only M/m terminate, and only after three numeric fields
        if _SGR_MOUSE_TAIL_RE.match(payload):
            return COMPLETE
        return INCOMPLETE if payload[-1] not in "Mm" else COMPLETE
    if 0x40 <= ord(payload[-1]) <= 0x7E:
        return COMPLETE
    return INCOMPLETE


def sequence_status(data: str) -> str:
    """Classify data as a complete, incomplete or non-escape sequence."""
    if not data.startswith(ESC):
        return NOT_ESCAPE
    if len(data) == 1:
        return INCOMPLETE

    intro = data[1]
    if intro == "[":
        if data.startswith(ESC + "[M"):
            # X10 mouse: ESC [ M b x y
            return COMPLETE if len(data) >= 6 else INCOMPLETE
        return _csi_status(data)
    if intro == "O":
        return COMPLETE if len(data) >= 3 else INCOMPLETE
    if intro in "]P_":
        if data.endswith(ESC + "\\") or data.endswith("\x07"):
            return COMPLETE
        return INCOMPLETE
    # ESC + any other char is an alt-modified key
    return COMPLETE


def split_sequences(buffer: str) -> tuple[list[str], str]:
    """Split buffer into complete sequences. Returns (sequences, remainder)."""
    sequences: list[str] = []
    pos = 0

    while pos < len(buffer):
        if buffer[pos] != ESC:
            sequences.append(buffer[pos])
            pos += 1
            continue

        end = pos + 1
        while True:
            if end > len(buffer):
                return sequences, buffer[pos:]
            candidate = buffer[pos:end]
            if sequence_status(candidate) == INCOMPLETE:
                end += 1
                continue
            # ESC ESC: the first ESC stands alone
            if end - pos == 2 and candidate[1] == ESC:
                candidate = ESC
                end = pos + 1
            sequences.append(candidate)
            pos = end
            break

    return sequences, ""


# ─────────────────────────────────────────────────────────────────────────────
# StdinBuffer
# ─────────────────────────────────────────────────────────────────────────────

class StdinBuffer:
    """
    Buffers stdin input and emits complete sequences via callbacks.

    Callbacks run on whichever thread called process() or on the flush
    timer's thread; consumers hop to their own loop if they need to.
    """

    def __init__(
        self,
        timeout_ms: int = 10,
        on_data: Callable[[str], None] | None = None,
    ) -> None:
        self._timeout_ms = timeout_ms
        self._buffer = ""
        self._lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._on_data: list[Callable[[str], None]] = []
        if on_data:
            self._on_data.append(on_data)

    def on(self, event: str, callback: Callable[[str], None]) -> None:
        """Register a callback for 'data' events."""
        if event != "data":
            raise ValueError(f"Unknown StdinBuffer event: {event}")
        self._on_data.append(callback)

    def _emit(self, seqs: list[str]) -> None:
        for seq in seqs:
            for cb in self._on_data:
                cb(seq)

    def _cancel_timer(self) -> None:
        if self._timer:
            self._timer.cancel()
            self._timer = None

    def process(self, data: str | bytes) -> None:
        """Feed input data into the buffer."""
        if isinstance(data, bytes):
            if len(data) == 1 and data[0] > 127:
                # Meta sends the high bit instead of an ESC prefix
                text = ESC + chr(data[0] - 128)
            else:
                text = data.decode("utf-8", errors="replace")
        else:
            text = data

        with self._lock:
            self._cancel_timer()
            seqs, self._buffer = split_sequences(self._buffer + text)
            if self._buffer:
                self._timer = threading.Timer(self._timeout_ms / 1000.0, self._flush_from_timer)
                self._timer.daemon = True
                self._timer.start()

        self._emit(seqs)

    def _flush_from_timer(self) -> None:
        self._emit(self.flush())

    def flush(self) -> list[str]:
        """Flush the buffer, returning any pending sequences."""
        with self._lock:
            self._cancel_timer()
            if not self._buffer:
                return []
            pending, self._buffer = self._buffer, ""
        return [pending]

    def clear(self) -> None:
        """Clear buffer and cancel pending timer."""
        with self._lock:
            self._cancel_timer()
            self._buffer = ""

    def get_buffer(self) -> str:
        return self._buffer

    def destroy(self) -> None:
        self.clear()
        self._on_data.clear()
