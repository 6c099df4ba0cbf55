"""
Renderer: DashboardState -> list of terminal rows.

Provides:
- render(): the full grid, exactly layout.height rows
- panel helpers (header, tab bar, output, file view, tasks, progress, session)
- format_currency / format_fraction / format_timer

Every bordered row is exactly layout.width columns wide. Content that
carries escape sequences is followed by a reset so its styling never
reaches the padding or the right border. The help bar below the frame is
the only unbordered row and is at most width columns wide.
"""
from __future__ import annotations

import math
import time

from orbital_tui.utils import truncate_from_start, truncate_to_width, visible_width

from .messages import TAB_FILE
from .model import DashboardState, file_line_count, tab_label
from .scroll import clamp_file_offset
from .styles import (
    BAR_WIDTH,
    BOX_VERTICAL,
    ICON_BRAND,
    ICON_COMPLETE,
    ICON_IN_PROGRESS,
    ICON_PENDING,
    ICON_WORKTREE,
    INNER_VERTICAL,
    RESET,
    WARNING_RATIO,
    Styles,
    bottom_border,
    divider,
    progress_bar,
    top_border,
)
from .tasks import STATUS_COMPLETED, STATUS_IN_PROGRESS, Task

INITIALIZING_MESSAGE = "Initializing..."
WAITING_MESSAGE = "Waiting for output..."

LINE_NUMBER_WIDTH = 5
SPEC_PATH_MAX = 60
PATH_MAX = 40

SEPARATOR = f" {INNER_VERTICAL} "


# ─────────────────────────────────────────────────────────────────────────────
# Formatting helpers
# ─────────────────────────────────────────────────────────────────────────────

def format_fraction(a: int, b: int) -> str:
    return f"{a}/{b}"


def format_currency(amount: float) -> str:
    """$1,234.56, rounding half away from zero."""
    if amount < 0:
        return "-" + format_currency(-amount)
    whole, cents = divmod(int(math.floor(amount * 100 + 0.5)), 100)
    return f"${whole:,}.{cents:02d}"


def format_timer(remaining: float) -> str:
    remaining = max(0.0, remaining)
    return f"{int(remaining // 60)}m {int(remaining) % 60}s"


def _fit(content: str, width: int) -> str:
    """content truncated and padded to exactly width columns."""
    if width <= 0:
        return ""
    fitted = truncate_to_width(content, width, ellipsis="")
    pad = " " * max(0, width - visible_width(fitted))
    if "\x1b" in fitted and not fitted.endswith(RESET):
        fitted += RESET
    return fitted + pad


def _row(content: str, width: int, styles: Styles) -> str:
    border = styles.border(BOX_VERTICAL)
    return border + _fit(content, width - 2) + border


def _blank(width: int, styles: Styles) -> str:
    return _row("", width, styles)


def _pad_rows(rows: list[str], height: int, width: int, styles: Styles) -> list[str]:
    rows = rows[:height]
    while len(rows) < height:
        rows.append(_blank(width, styles))
    return rows


# ─────────────────────────────────────────────────────────────────────────────
# Panels
# ─────────────────────────────────────────────────────────────────────────────

def render_header(state: DashboardState, styles: Styles) -> str:
    layout = state.layout
    p = state.progress
    content_width = layout.content_width

    brand_text = f"{ICON_BRAND} ORBITAL"
    iter_text = format_fraction(p.iteration, p.max_iteration)
    cost_text = format_currency(p.cost) + "/" + format_currency(p.budget)

    iter_warn = p.max_iteration > 0 and p.iteration / p.max_iteration > WARNING_RATIO
    cost_warn = p.budget > 0 and p.cost / p.budget > WARNING_RATIO
    iter_styled = (styles.warning if iter_warn else styles.value)(iter_text)
    cost_styled = (styles.warning if cost_warn else styles.value)(cost_text)

    metrics = (
        styles.label("Iteration ") + iter_styled
        + styles.label(f"  {INNER_VERTICAL}  ") + cost_styled
    )
    metrics_width = visible_width(f"Iteration {iter_text}  {INNER_VERTICAL}  {cost_text}")
    padding = max(1, content_width - visible_width(brand_text) - metrics_width - 2)

    content = " " + styles.brand(brand_text) + " " * padding + metrics + " "
    return _row(content, layout.width, styles)


def render_tab_bar(state: DashboardState, styles: Styles) -> str:
    layout = state.layout
    content_width = layout.content_width
    separator = styles.tab_bar(INNER_VERTICAL)

    parts: list[str] = []
    used = 0
    for i, tab in enumerate(state.tabs):
        name = tab_label(i, tab)
        tab_width = visible_width(name) + 2
        needed = tab_width + (1 if parts else 0)
        if used + needed > content_width:
            # room for a separator plus a padded "..."
            if used + 1 + 5 <= content_width:
                parts.append(styles.tab_inactive("..."))
            break
        style = styles.tab_active if i == state.active_tab else styles.tab_inactive
        parts.append(style(name))
        used += needed

    return _row(separator.join(parts), layout.width, styles)


def render_output(state: DashboardState, styles: Styles) -> list[str]:
    layout = state.layout
    height = layout.scroll_height
    width = layout.width
    content_width = layout.content_width
    if height <= 0:
        return []

    if len(state.output) == 0:
        rows = [_blank(width, styles) for _ in range(max(0, height // 2 - 1))]
        left = max(0, (content_width - visible_width(WAITING_MESSAGE)) // 2)
        rows.append(_row(" " * left + styles.label(WAITING_MESSAGE), width, styles))
        return _pad_rows(rows, height, width, styles)

    rows = [
        _row("  " + line.text, width, styles)
        for line in state.output.cache.window(state.scroll.offset, height)
    ]
    return _pad_rows(rows, height, width, styles)


def render_file(state: DashboardState, path: str, styles: Styles) -> list[str]:
    layout = state.layout
    height = layout.scroll_height
    width = layout.width
    if height <= 0:
        return []

    content = state.file_contents.get(path)
    if content is None:
        return _pad_rows([_row(styles.label(f"  Loading {path}..."), width, styles)], height, width, styles)

    lines = content.split("\n")
    offset = clamp_file_offset(state.file_offsets.get(path, 0), file_line_count(content), height)
    text_width = max(1, layout.content_width - LINE_NUMBER_WIDTH - 1)

    rows: list[str] = []
    for index in range(offset, min(len(lines), offset + height)):
        gutter = styles.label(f"{index + 1:>{LINE_NUMBER_WIDTH}}{INNER_VERTICAL}")
        line = truncate_to_width(lines[index].rstrip("\r"), text_width)
        rows.append(_row(gutter + line, width, styles))
    return _pad_rows(rows, height, width, styles)


def render_main(state: DashboardState, styles: Styles) -> list[str]:
    tab = state.active
    if tab.kind == TAB_FILE and tab.path:
        return render_file(state, tab.path, styles)
    return render_output(state, styles)


def _task_row(task: Task, state: DashboardState, styles: Styles) -> str:
    if task.status == STATUS_COMPLETED:
        icon, style = ICON_COMPLETE, styles.task_complete
    elif task.status == STATUS_IN_PROGRESS:
        icon, style = ICON_IN_PROGRESS, styles.task_in_progress
    else:
        icon, style = ICON_PENDING, styles.task_pending

    content_width = state.layout.content_width
    content = truncate_to_width(task.content, max(4, content_width - 6))
    return _row(style(f"  {icon} {content}"), state.layout.width, styles)


def render_tasks(state: DashboardState, styles: Styles) -> list[str]:
    layout = state.layout
    if layout.task_height <= 0:
        return []
    header = "  " + styles.header("Tasks")
    if layout.has_task_overflow(len(state.tasks)):
        header += styles.label(" (scroll)")
    rows = [_row(header, layout.width, styles)]
    rows.extend(_task_row(task, state, styles) for task in state.tasks[:layout.tasks_visible])
    return _pad_rows(rows, layout.task_height, layout.width, styles)


def _format_iteration_timer(state: DashboardState, styles: Styles, now: float) -> str:
    p = state.progress
    if p.iteration_start is None or p.iteration_timeout <= 0 or p.is_gate_step:
        return ""
    remaining = max(0.0, p.iteration_timeout - (now - p.iteration_start))
    style = styles.warning if remaining < 60 else styles.label
    return style(format_timer(remaining))


def render_progress(state: DashboardState, styles: Styles, now: float) -> list[str]:
    layout = state.layout
    p = state.progress
    width = layout.width

    # Line 1: iteration, countdown, step, gate retries
    iter_ratio = p.iteration / p.max_iteration if p.max_iteration > 0 else 0.0
    iter_style = styles.warning if p.max_iteration > 0 and iter_ratio > WARNING_RATIO else styles.value
    parts = [
        progress_bar(iter_ratio, styles, BAR_WIDTH) + " "
        + styles.label("Iteration ") + iter_style(format_fraction(p.iteration, p.max_iteration))
    ]
    timer = _format_iteration_timer(state, styles, now)
    if timer:
        parts.append(timer)
    if p.step_name:
        step = styles.label("Step: ") + styles.value(p.step_name)
        if p.step_total > 0:
            step += (
                styles.label(" (") + styles.value(format_fraction(p.step_position, p.step_total))
                + styles.label(")")
            )
        parts.append(step)
    if p.gate_retries > 0 or p.max_retries > 0:
        parts.append(styles.label("Gate retries: ") + styles.value(format_fraction(p.gate_retries, p.max_retries)))
    line1 = " " + SEPARATOR.join(parts)

    # Line 2: budget
    cost_ratio = p.cost / p.budget if p.budget > 0 else 0.0
    tokens = (
        styles.label("Tokens: ") + styles.value(f"{p.tokens_in:,}")
        + styles.label(" in / ") + styles.value(f"{p.tokens_out:,}") + styles.label(" out")
    )
    cost_style = styles.warning if p.budget > 0 and cost_ratio > WARNING_RATIO else styles.value
    cost = (
        styles.label("Cost: ") + cost_style(format_currency(p.cost))
        + styles.label(" / ") + styles.value(format_currency(p.budget))
    )
    line2 = " " + progress_bar(cost_ratio, styles, BAR_WIDTH) + " " + tokens + SEPARATOR + cost

    # Line 3: context window
    used = p.tokens_in + p.tokens_out
    context_ratio = used / p.context_window if p.context_window > 0 else 0.0
    context_style = styles.warning if context_ratio > WARNING_RATIO else styles.value
    context = styles.label("Context: ") + context_style(
        f"{used:,}/{p.context_window:,} ({int(context_ratio * 100)}%)"
    )
    line3 = " " + progress_bar(context_ratio, styles, BAR_WIDTH) + " " + context

    rows = [_row(line, width, styles) for line in (line1, line2, line3)]
    return _pad_rows(rows, layout.progress_height, width, styles)


def _format_path(label: str, path: str, max_width: int, styles: Styles) -> str:
    return styles.label(f"{label}: ") + styles.value(truncate_from_start(path, max_width))


def render_session(state: DashboardState, styles: Styles) -> list[str]:
    layout = state.layout
    s = state.session
    width = layout.width

    if not s.spec_files:
        spec = styles.label("Spec: ") + styles.value("(none)")
    elif len(s.spec_files) == 1:
        spec = _format_path("Spec", s.spec_files[0], SPEC_PATH_MAX, styles)
    else:
        spec = styles.label("Spec: ") + styles.value(f"{len(s.spec_files):,} files")
    line1 = " " + spec
    if state.progress.workflow_name:
        line1 += SEPARATOR + styles.label("Workflow: ") + styles.value(state.progress.workflow_name)

    paths = []
    if s.notes_file:
        paths.append(_format_path("Notes", s.notes_file, PATH_MAX, styles))
    if s.state_file:
        paths.append(_format_path("State", s.state_file, PATH_MAX, styles))
    if s.context_file:
        paths.append(_format_path("Context", s.context_file, PATH_MAX, styles))
    line2 = " " + SEPARATOR.join(paths)

    rows = [_row(line1, width, styles), _row(line2, width, styles)]
    rows = _pad_rows(rows, layout.session_height, width, styles)

    if layout.worktree_height > 0 and state.worktree is not None:
        wt = state.worktree
        line = (
            " " + styles.worktree_label(f"{ICON_WORKTREE} Worktree: ")
            + styles.worktree_value(truncate_from_start(wt.path, SPEC_PATH_MAX))
        )
        if wt.branch:
            line += SEPARATOR + styles.worktree_label("Branch: ") + styles.worktree_value(wt.branch)
        rows.append(_row(line, width, styles))
    return rows


def render_help(width: int, styles: Styles) -> str:
    keys = (("↑/↓", " scroll  "), ("←/→", " tab  "), ("1-9", " jump  "), ("r", " reload  "), ("q", " quit"))
    text = "  " + "".join(styles.help_key(k) + styles.help_bar(desc) for k, desc in keys)
    return truncate_to_width(text, width, ellipsis="")


# ─────────────────────────────────────────────────────────────────────────────
# Grid
# ─────────────────────────────────────────────────────────────────────────────

def render(state: DashboardState, styles: Styles, now: float | None = None) -> list[str]:
    """Render state as a list of rows (no trailing newlines)."""
    if not state.ready or state.layout is None:
        return [INITIALIZING_MESSAGE]
    layout = state.layout
    if layout.too_small:
        return [styles.too_small(layout.too_small_message)]
    if layout.width <= 0 or layout.height <= 0:
        return []
    if now is None:
        now = state.now if state.now is not None else time.time()

    width = layout.width
    border = styles.border
    rows = [top_border(width, border), render_header(state, styles), divider(width, border)]
    rows += [render_tab_bar(state, styles), divider(width, border)]
    rows += render_main(state, styles)
    rows.append(divider(width, border))
    if layout.task_height > 0:
        rows += render_tasks(state, styles)
        rows.append(divider(width, border))
    rows += render_progress(state, styles, now)
    rows.append(divider(width, border))
    rows += render_session(state, styles)
    rows.append(bottom_border(width, border))
    rows.append(render_help(width, styles))
    return rows


def render_text(state: DashboardState, styles: Styles, now: float | None = None) -> str:
    return "\n".join(render(state, styles, now))
