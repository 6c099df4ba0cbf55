"""
Keyboard and mouse input decoding for legacy (xterm-style) terminals.

API:
- parse_key(data) — parse one input sequence and return a key identifier string
- parse_mouse(data) — decode an SGR (1006) mouse report into a MouseEvent
- is_mouse_sequence(data) — cheap check before parse_mouse
"""
from __future__ import annotations

import re
from dataclasses import dataclass

# ─────────────────────────────────────────────────────────────────────────────
# Legacy escape sequences
# ─────────────────────────────────────────────────────────────────────────────

_LEGACY_SEQ_KEY_IDS: dict[str, str] = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1bOH": "home",
    "\x1b[1~": "home",
    "\x1b[7~": "home",
    "\x1b[F": "end",
    "\x1bOF": "end",
    "\x1b[4~": "end",
    "\x1b[8~": "end",
    "\x1b[2~": "insert",
    "\x1b[3~": "delete",
    "\x1b[5~": "pageUp",
    "\x1b[6~": "pageDown",
    "\x1b[[5~": "pageUp",
    "\x1b[[6~": "pageDown",
    "\x1b[a": "shift+up",
    "\x1b[b": "shift+down",
    "\x1b[c": "shift+right",
    "\x1b[d": "shift+left",
    "\x1bOa": "ctrl+up",
    "\x1bOb": "ctrl+down",
    "\x1bOc": "ctrl+right",
    "\x1bOd": "ctrl+left",
    "\x1b[5^": "ctrl+pageUp",
    "\x1b[6^": "ctrl+pageDown",
    "\x1b[Z": "shift+tab",
    "\x1bOP": "f1",
    "\x1bOQ": "f2",
    "\x1bOR": "f3",
    "\x1bOS": "f4",
    "\x1b[11~": "f1",
    "\x1b[12~": "f2",
    "\x1b[13~": "f3",
    "\x1b[14~": "f4",
    "\x1b[15~": "f5",
}

_MOD_ARROW_RE = re.compile(r"^\x1b\[1;(\d+)([ABCDHF])$")
_ARROW_NAMES = {"A": "up", "B": "down", "C": "right", "D": "left", "H": "home", "F": "end"}


def _modifier_prefix(mod: int) -> str:
    # xterm encodes modifiers as 1 + bitmask(shift=1, alt=2, ctrl=4)
    bits = mod - 1
    mods: list[str] = []
    if bits & 1:
        mods.append("shift")
    if bits & 4:
        mods.append("ctrl")
    if bits & 2:
        mods.append("alt")
    return "+".join(mods) + "+" if mods else ""


# ─────────────────────────────────────────────────────────────────────────────
# parse_key
# ─────────────────────────────────────────────────────────────────────────────

def parse_key(data: str) -> str | None:
    """
    Parse raw terminal input and return a key identifier string, or None.

    Identifiers: "up", "pageDown", "shift+tab", "ctrl+c", "tab", "enter",
    "escape", printable characters as themselves.
    """
    if not data:
        return None

    seq_id = _LEGACY_SEQ_KEY_IDS.get(data)
    if seq_id:
        return seq_id

    m = _MOD_ARROW_RE.match(data)
    if m:
        return _modifier_prefix(int(m.group(1))) + _ARROW_NAMES[m.group(2)]

    if data == "\x1b":
        return "escape"
    if data == "\t":
        return "tab"
    if data in ("\r", "\n", "\x1bOM"):
        return "enter"
    if data == " ":
        return "space"
    if data in ("\x7f", "\x08"):
        return "backspace"
    if data == "\x00":
        return "ctrl+space"

    if len(data) == 2 and data[0] == "\x1b":
        code = ord(data[1])
        if 1 <= code <= 26:
            return f"ctrl+alt+{chr(code + 96)}"
        if 32 < code <= 126:
            return f"alt+{data[1]}"

    if len(data) == 1:
        code = ord(data)
        if 1 <= code <= 26:
            return f"ctrl+{chr(code + 96)}"
        if 32 <= code <= 126:
            return data

    return None


# ─────────────────────────────────────────────────────────────────────────────
# SGR mouse reports: ESC [ < button ; column ; row (M|m)
# ─────────────────────────────────────────────────────────────────────────────

_SGR_MOUSE_RE = re.compile(r"^\x1b\[<(\d+);(\d+);(\d+)([Mm])$")

MOUSE_LEFT = "left"
MOUSE_MIDDLE = "middle"
MOUSE_RIGHT = "right"
MOUSE_WHEEL_UP = "wheelUp"
MOUSE_WHEEL_DOWN = "wheelDown"


@dataclass(frozen=True)
class MouseEvent:
    """A decoded mouse report. x and y are 0-based cell coordinates."""
    button: str
    x: int
    y: int
    pressed: bool
    motion: bool = False


def is_mouse_sequence(data: str) -> bool:
    return data.startswith("\x1b[<") and data[-1:] in ("M", "m")


def parse_mouse(data: str) -> MouseEvent | None:
    m = _SGR_MOUSE_RE.match(data)
    if not m:
        return None
    code = int(m.group(1))
    x = int(m.group(2)) - 1
    y = int(m.group(3)) - 1
    pressed = m.group(4) == "M"
    motion = bool(code & 32)

    if code & 64:
        button = MOUSE_WHEEL_DOWN if code & 1 else MOUSE_WHEEL_UP
    else:
        button = (MOUSE_LEFT, MOUSE_MIDDLE, MOUSE_RIGHT, MOUSE_LEFT)[code & 3]
    return MouseEvent(button=button, x=max(0, x), y=max(0, y), pressed=pressed, motion=motion)
