"""
Word wrapping for the output stream.

wrap_line() splits one raw output line into display lines no wider than the
target width. Escape sequences count as zero columns and stay inside the
chunk they appear in; no reset or reopen codes are added at break points.
Continuation lines are indented so list items keep their text column.
"""
from __future__ import annotations

import re

from orbital_tui.utils import TAB_WIDTH, Cell, expand_tabs, iter_cells, strip_ansi, visible_width

DEFAULT_INDENT = "    "

_BULLET_RE = re.compile(r"^([ \t]*)[-*+] ")
_NUMBERED_RE = re.compile(r"^([ \t]*)(\d+)\. ")


def _leading_columns(whitespace: str) -> int:
    return sum(TAB_WIDTH if ch == "\t" else 1 for ch in whitespace)


def detect_list_indent(line: str) -> str:
    """
    Indent for continuation lines of line.

    "- item" / "* item" / "+ item" align under the item text, "12. item"
    aligns under the text after the number, anything else gets four spaces.
    Leading whitespace counts toward the indent, tabs as four columns.
    """
    plain = strip_ansi(line)

    m = _BULLET_RE.match(plain)
    if m:
        return " " * (_leading_columns(m.group(1)) + 2)

    m = _NUMBERED_RE.match(plain)
    if m:
        return " " * (_leading_columns(m.group(1)) + len(m.group(2)) + 2)

    return DEFAULT_INDENT


def _is_space(cell: Cell) -> bool:
    return cell.text == " "


def wrap_line(line: str, width: int) -> list[str]:
    """
    Wrap line to width display columns.

    Returns [line] untouched when width <= 0 or the line already fits.
    Otherwise breaks at the last space that keeps the chunk within width,
    or mid-word when a chunk has no such space. Spaces at a break are
    dropped; every chunk after the first starts with the list indent.
    """
    if width <= 0 or visible_width(line) <= width:
        return [line]

    indent = detect_list_indent(line)
    if width - len(indent) < 1:
        indent = ""

    cells = list(iter_cells(expand_tabs(line)))
    n = len(cells)
    chunks: list[str] = []
    carry = ""
    pos = 0

    while pos < n:
        chunk_indent = indent if chunks else ""
        if chunk_indent:
            first = next((c for c in cells[pos:] if c.width), None)
            # a wide cell that cannot fit beside the indent goes unindented
            if first is not None and len(chunk_indent) + first.width > width:
                chunk_indent = ""
        avail = width - len(chunk_indent)

        used = 0
        end = pos
        last_space = -1
        seen_text = False
        while end < n:
            cell = cells[end]
            if cell.width and used + cell.width > avail:
                break
            if _is_space(cell):
                if seen_text:
                    last_space = end
            elif cell.width:
                seen_text = True
            used += cell.width
            end += 1

        if end >= n:
            cut = next_pos = n
        elif seen_text and _is_space(cells[end]):
            cut = next_pos = end
        elif last_space != -1:
            cut = next_pos = last_space
        else:
            # No usable space: force a break, always consuming one visible cell
            while end < n and not any(c.width for c in cells[pos:end]):
                end += 1
            cut = next_pos = end

        text = "".join(c.text for c in cells[pos:cut])
        chunks.append(chunk_indent + carry + text)

        # Drop break spaces; escape sequences in the gap move to the next chunk
        carry = ""
        if cut < n:
            while next_pos < n and (_is_space(cells[next_pos]) or not cells[next_pos].width):
                if not cells[next_pos].width:
                    carry += cells[next_pos].text
                next_pos += 1
        pos = next_pos

    if carry:
        chunks[-1] += carry

    return chunks
