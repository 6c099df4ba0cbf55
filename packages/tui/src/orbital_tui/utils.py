"""
Terminal text utilities.

Provides:
- visible_width(): terminal column width of a string (ANSI-aware, wide chars, emoji)
- strip_ansi(): remove escape sequences
- extract_ansi_code(): pull one escape sequence out of a string
- iter_cells(): walk a string as (text, width) cells, escape sequences zero-width
- truncate_to_width(): truncate with ellipsis, ANSI-aware
- truncate_from_start(): keep the tail of a string behind a leading "..."
- pad_to_width(): right-pad to an exact column count
- expand_tabs(): replace tabs with fixed-width runs of spaces
"""
from __future__ import annotations

import re
import unicodedata
from typing import Iterator, NamedTuple

from wcwidth import wcwidth as _wcwidth

TAB_WIDTH = 4

# ─────────────────────────────────────────────────────────────────────────────
# Width cache
# ─────────────────────────────────────────────────────────────────────────────
_WIDTH_CACHE_SIZE = 512
_width_cache: dict[str, int] = {}

_ANSI_CSI_RE = re.compile(r"\x1b\[[0-9;:?<=>]*[ -/]*[@-~]")
_ANSI_OSC_RE = re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)")
_ANSI_APC_RE = re.compile(r"\x1b_[^\x07\x1b]*(?:\x07|\x1b\\)")


def _could_be_emoji(cp: int, segment: str) -> bool:
    return (
        (0x1f000 <= cp <= 0x1fbff) or
        (0x2300 <= cp <= 0x23ff) or
        (0x2600 <= cp <= 0x27bf) or
        (0x2b50 <= cp <= 0x2b55) or
        "\ufe0f" in segment or
        len(segment) > 2
    )


def _grapheme_width(segment: str) -> int:
    """Calculate terminal width of a single grapheme cluster."""
    if not segment:
        return 0

    cp = ord(segment[0])

    cat = unicodedata.category(segment[0])
    if cat in ("Mn", "Me", "Cf", "Cc", "Cs", "Co", "Cn"):
        if all(unicodedata.category(c) in ("Mn", "Me", "Cf", "Cc", "Cs") for c in segment):
            return 0

    if _could_be_emoji(cp, segment):
        # ZWJ sequences, flags and skin tones occupy two cells
        if len(segment) > 1:
            return 2
        if _wcwidth(segment[0]) == 2 or 0x1f000 <= cp <= 0x1fbff:
            return 2

    w = _wcwidth(segment[0])
    if w < 0:
        return 0
    return w


def _segment_graphemes(text: str) -> list[str]:
    """Segment text into grapheme clusters (combining marks join their base)."""
    clusters: list[str] = []
    i = 0
    while i < len(text):
        cluster = text[i]
        i += 1
        while i < len(text):
            ch = text[i]
            if unicodedata.category(ch) in ("Mn", "Me", "Cf") or ord(ch) in (0x200D, 0xFE0F, 0x20E3):
                cluster += ch
                i += 1
            else:
                break
        clusters.append(cluster)
    return clusters


def strip_ansi(s: str) -> str:
    """Remove CSI, OSC and APC escape sequences."""
    if "\x1b" not in s:
        return s
    s = _ANSI_CSI_RE.sub("", s)
    s = _ANSI_OSC_RE.sub("", s)
    return _ANSI_APC_RE.sub("", s)


def expand_tabs(s: str) -> str:
    return s.replace("\t", " " * TAB_WIDTH) if "\t" in s else s


def visible_width(s: str) -> int:
    """
    Calculate the visible terminal column width of a string.
    Handles ANSI escape codes, wide chars, emoji and tabs.
    """
    if not s:
        return 0

    # Fast path: pure ASCII printable
    if all(0x20 <= ord(c) <= 0x7e for c in s):
        return len(s)

    cached = _width_cache.get(s)
    if cached is not None:
        return cached

    clean = strip_ansi(expand_tabs(s))
    width = sum(_grapheme_width(g) for g in _segment_graphemes(clean))

    if len(_width_cache) >= _WIDTH_CACHE_SIZE:
        _width_cache.pop(next(iter(_width_cache)))
    _width_cache[s] = width
    return width


# ─────────────────────────────────────────────────────────────────────────────
# ANSI code extraction
# ─────────────────────────────────────────────────────────────────────────────

class _AnsiExtract(NamedTuple):
    code: str
    length: int


def extract_ansi_code(s: str, pos: int) -> _AnsiExtract | None:
    """Extract ANSI escape sequence starting at pos. Returns None if not found."""
    if pos >= len(s) or s[pos] != "\x1b":
        return None
    if pos + 1 >= len(s):
        return None
    next_ch = s[pos + 1]

    # CSI: ESC [ params final
    if next_ch == "[":
        j = pos + 2
        while j < len(s) and not ("\x40" <= s[j] <= "\x7e"):
            j += 1
        if j < len(s):
            return _AnsiExtract(s[pos:j + 1], j + 1 - pos)
        return None

    # OSC / APC: terminated by BEL or ST
    if next_ch in ("]", "_"):
        j = pos + 2
        while j < len(s):
            if s[j] == "\x07":
                return _AnsiExtract(s[pos:j + 1], j + 1 - pos)
            if s[j] == "\x1b" and j + 1 < len(s) and s[j + 1] == "\\":
                return _AnsiExtract(s[pos:j + 2], j + 2 - pos)
            j += 1
        return None

    return None


class Cell(NamedTuple):
    text: str
    width: int


def iter_cells(text: str) -> Iterator[Cell]:
    """
    Walk text as display cells.

    Escape sequences come out whole with width 0; everything else comes out
    one grapheme cluster at a time with its terminal width.
    """
    i = 0
    while i < len(text):
        ansi = extract_ansi_code(text, i)
        if ansi:
            yield Cell(ansi.code, 0)
            i += ansi.length
            continue

        end = i + 1
        while end < len(text) and text[end] != "\x1b":
            end += 1

        for g in _segment_graphemes(text[i:end]):
            yield Cell(g, _grapheme_width(g))
        i = end


# ─────────────────────────────────────────────────────────────────────────────
# Truncation and padding
# ─────────────────────────────────────────────────────────────────────────────

def truncate_to_width(
    text: str,
    max_width: int,
    ellipsis: str = "...",
    pad: bool = False,
) -> str:
    """
    Truncate text to max_width columns, adding ellipsis if needed.
    ANSI codes are preserved but don't count toward width.
    """
    if max_width <= 0:
        return ""

    text = expand_tabs(text)
    text_visible = visible_width(text)
    if text_visible <= max_width:
        if pad:
            return text + " " * (max_width - text_visible)
        return text

    ellipsis_width = visible_width(ellipsis)
    target_width = max_width - ellipsis_width
    if target_width <= 0:
        return ellipsis[:max_width]

    result = ""
    current_width = 0
    for cell in iter_cells(text):
        if cell.width == 0:
            result += cell.text
            continue
        if current_width + cell.width > target_width:
            break
        result += cell.text
        current_width += cell.width

    truncated = f"{result}\x1b[0m{ellipsis}" if "\x1b" in result else result + ellipsis
    if pad:
        return truncated + " " * max(0, max_width - current_width - ellipsis_width)
    return truncated


def truncate_from_start(text: str, max_width: int, ellipsis: str = "...") -> str:
    """
    Keep the last columns of a plain string that fit max_width, behind a
    leading ellipsis. Paths keep their file name this way.
    """
    if visible_width(text) <= max_width:
        return text
    budget = max_width - visible_width(ellipsis)
    if budget <= 0:
        return ellipsis

    kept: list[str] = []
    width = 0
    for g in reversed(_segment_graphemes(strip_ansi(text))):
        gw = _grapheme_width(g)
        if width + gw > budget:
            break
        kept.append(g)
        width += gw
    return ellipsis + "".join(reversed(kept))


def pad_to_width(text: str, width: int) -> str:
    """Fit text into exactly width columns: truncate (no ellipsis) then pad."""
    if width <= 0:
        return ""
    fitted = truncate_to_width(text, width, ellipsis="")
    return fitted + " " * max(0, width - visible_width(fitted))
