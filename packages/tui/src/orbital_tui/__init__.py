"""
orbital_tui — terminal primitives for full-screen dashboards.

Display-width measurement, ANSI-aware truncation, key and mouse decoding,
stdin sequence splitting, and a raw-mode terminal on the alternate screen.
"""
from .keys import MouseEvent, is_mouse_sequence, parse_key, parse_mouse
from .stdin_buffer import StdinBuffer
from .terminal import ProcessTerminal, Terminal
from .utils import (
    expand_tabs,
    extract_ansi_code,
    iter_cells,
    pad_to_width,
    strip_ansi,
    truncate_from_start,
    truncate_to_width,
    visible_width,
)

__all__ = [
    "MouseEvent",
    "ProcessTerminal",
    "StdinBuffer",
    "Terminal",
    "expand_tabs",
    "extract_ansi_code",
    "is_mouse_sequence",
    "iter_cells",
    "pad_to_width",
    "parse_key",
    "parse_mouse",
    "strip_ansi",
    "truncate_from_start",
    "truncate_to_width",
    "visible_width",
]
