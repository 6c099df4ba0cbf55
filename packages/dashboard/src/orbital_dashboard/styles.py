"""
Colour themes, box-drawing characters and small render helpers.

A Styles object is a bag of Callable[[str], str] functions; callers never
see raw SGR codes. Dark uses the 256-colour amber palette, light uses darker
shades of the same hues, and no_styles() makes every function the identity.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable

StyleFn = Callable[[str], str]

# Box drawing
BOX_TOP_LEFT = "╔"
BOX_TOP_RIGHT = "╗"
BOX_BOTTOM_LEFT = "╚"
BOX_BOTTOM_RIGHT = "╝"
BOX_HORIZONTAL = "═"
BOX_VERTICAL = "║"
BOX_LEFT_T = "╠"
BOX_RIGHT_T = "╣"
INNER_VERTICAL = "│"

# Icons
ICON_BRAND = "◆"
ICON_PENDING = "○"
ICON_IN_PROGRESS = "→"
ICON_COMPLETE = "●"
ICON_WORKTREE = "⎇"

BAR_FILLED = "█"
BAR_EMPTY = "░"
BAR_WIDTH = 20

WARNING_RATIO = 0.8

RESET = "\x1b[0m"


def _identity(s: str) -> str:
    return s


def _fg(code: int, bold: bool = False) -> StyleFn:
    if bold:
        return lambda s: f"\x1b[1;38;5;{code}m{s}\x1b[22;39m"
    return lambda s: f"\x1b[38;5;{code}m{s}\x1b[39m"


def _tab(fg: int, bg: int | None, bold: bool = False) -> StyleFn:
    # Tabs carry one column of padding on each side
    open_codes = f"38;5;{fg}"
    close_codes = "39"
    if bg is not None:
        open_codes += f";48;5;{bg}"
        close_codes += ";49"
    if bold:
        open_codes = "1;" + open_codes
        close_codes = "22;" + close_codes
    return lambda s: f"\x1b[{open_codes}m {s} \x1b[{close_codes}m"


@dataclass
class Palette:
    amber: int
    amber_dim: int
    amber_light: int
    amber_faded: int
    background: int
    success: int
    warning: int
    error: int
    worktree: int
    worktree_value: int


DARK_PALETTE = Palette(
    amber=214, amber_dim=136, amber_light=222, amber_faded=178, background=0,
    success=82, warning=208, error=196, worktree=141, worktree_value=183,
)

LIGHT_PALETTE = Palette(
    amber=130, amber_dim=94, amber_light=58, amber_faded=136, background=231,
    success=28, warning=166, error=160, worktree=55, worktree_value=91,
)


@dataclass
class Styles:
    border: StyleFn = field(default=_identity)
    brand: StyleFn = field(default=_identity)
    header: StyleFn = field(default=_identity)
    label: StyleFn = field(default=_identity)
    value: StyleFn = field(default=_identity)
    success: StyleFn = field(default=_identity)
    warning: StyleFn = field(default=_identity)
    error: StyleFn = field(default=_identity)
    task_pending: StyleFn = field(default=_identity)
    task_in_progress: StyleFn = field(default=_identity)
    task_complete: StyleFn = field(default=_identity)
    tab_active: StyleFn = field(default=lambda s: f" {s} ")
    tab_inactive: StyleFn = field(default=lambda s: f" {s} ")
    tab_bar: StyleFn = field(default=_identity)
    help_bar: StyleFn = field(default=_identity)
    help_key: StyleFn = field(default=_identity)
    too_small: StyleFn = field(default=_identity)
    worktree_label: StyleFn = field(default=_identity)
    worktree_value: StyleFn = field(default=_identity)
    colored: bool = False


def styles_from_palette(p: Palette) -> Styles:
    return Styles(
        border=_fg(p.amber),
        brand=_fg(p.amber, bold=True),
        header=_fg(p.amber, bold=True),
        label=_fg(p.amber_dim),
        value=_fg(p.amber_light),
        success=_fg(p.success),
        warning=_fg(p.warning),
        error=_fg(p.error),
        task_pending=_fg(p.amber_dim),
        task_in_progress=_fg(p.amber),
        task_complete=_fg(p.success),
        tab_active=_tab(p.background, p.amber, bold=True),
        tab_inactive=_tab(p.amber_faded, None),
        tab_bar=_fg(p.amber_dim),
        help_bar=_fg(p.amber_dim),
        help_key=_fg(p.amber_faded),
        too_small=_fg(p.warning, bold=True),
        worktree_label=_fg(p.worktree, bold=True),
        worktree_value=_fg(p.worktree_value),
        colored=True,
    )


def no_styles() -> Styles:
    return Styles()


def detect_theme(env: dict[str, str] | None = None) -> str:
    """Guess dark/light from COLORFGBG ("fg;bg"); dark when unknown."""
    env = os.environ if env is None else env
    value = env.get("COLORFGBG", "")
    bg = value.rsplit(";", 1)[-1] if value else ""
    if not bg.isdigit():
        return "dark"
    return "dark" if int(bg) in (0, 1, 2, 3, 4, 5, 6, 8) else "light"


def resolve_theme(theme: str, env: dict[str, str] | None = None) -> str:
    if theme == "auto":
        return detect_theme(env)
    return theme


def get_styles(theme: str = "dark", no_color: bool = False) -> Styles:
    if no_color:
        return no_styles()
    palette = LIGHT_PALETTE if resolve_theme(theme) == "light" else DARK_PALETTE
    return styles_from_palette(palette)


# ─────────────────────────────────────────────────────────────────────────────
# Borders and bars
# ─────────────────────────────────────────────────────────────────────────────

def _horizontal(width: int, left: str, right: str, style: StyleFn) -> str:
    if width <= 0:
        return ""
    if width <= 2:
        return style((left + right)[:width])
    return style(left + BOX_HORIZONTAL * (width - 2) + right)


def top_border(width: int, style: StyleFn) -> str:
    return _horizontal(width, BOX_TOP_LEFT, BOX_TOP_RIGHT, style)


def divider(width: int, style: StyleFn) -> str:
    return _horizontal(width, BOX_LEFT_T, BOX_RIGHT_T, style)


def bottom_border(width: int, style: StyleFn) -> str:
    return _horizontal(width, BOX_BOTTOM_LEFT, BOX_BOTTOM_RIGHT, style)


def progress_bar(ratio: float, styles: Styles, width: int = BAR_WIDTH) -> str:
    """[████░░░░] with the fill in warning style above 80%."""
    ratio = max(0.0, min(1.0, ratio))
    filled = min(width, int(ratio * width))
    bar = BAR_FILLED * filled + BAR_EMPTY * (width - filled)
    style = styles.warning if ratio > WARNING_RATIO else styles.value
    return "[" + style(bar) + "]"
