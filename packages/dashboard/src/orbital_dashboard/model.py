"""
Dashboard state and the reducer that advances it.

Provides:
- DashboardState: immutable snapshot of everything the renderer reads
- OutputPane: the output line buffer and its wrapped-line cache
- new_state(): initial state for a config
- reduce(): (state, message) -> (new state, commands)

reduce() never performs I/O. Anything that needs it (loading a file,
checking a file's mtime, quitting) is returned as a command for the
Program to execute.

The OutputPane is the one mutable part of the state. Copying a buffer of
up to 10,000 lines on every message is not affordable, so successive
states share the same pane and the reducer appends to it in place. Only
the UI loop ever touches it.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from os.path import basename
from typing import Callable, Mapping

from orbital_tui.keys import MOUSE_LEFT, MOUSE_WHEEL_DOWN, MOUSE_WHEEL_UP
from orbital_tui.utils import visible_width

from .config import DEFAULT_MAX_OUTPUT_LINES, DashboardConfig
from .layout import BORDER_COLUMNS, Layout, calculate_layout
from .messages import (
    OUTPUT_TAB,
    TAB_FILE,
    CheckFile,
    ClearOutput,
    Command,
    FileContent,
    FileRefreshTick,
    KeyPress,
    LoadFile,
    Message,
    Mouse,
    OutputLine,
    ProgressInfo,
    ProgressUpdated,
    Quit,
    SessionInfo,
    SessionUpdated,
    StatsUpdated,
    Tab,
    TasksUpdated,
    TimerTick,
    WindowSize,
    WorktreeInfo,
    WorktreeUpdated,
)
from .ringbuffer import LineBuffer
from .scroll import ScrollState, clamp_file_offset, scroll_file
from .tasks import Task
from .wrap_cache import WrappedLineCache

OUTPUT_PADDING_LEFT = 2

# 0-based grid row of the tab bar: top border, header, divider, tabs
TAB_BAR_ROW = 3

MAX_NUMBERED_TABS = 9


class OutputPane:
    """Output lines plus their wrapped projection at the current width."""

    def __init__(self, capacity: int = DEFAULT_MAX_OUTPUT_LINES) -> None:
        self.buffer = LineBuffer(capacity)
        self.cache = WrappedLineCache(self.buffer)

    def push(self, line: str) -> None:
        self.buffer.push(line)
        self.cache.append_incremental(line)

    def clear(self) -> None:
        self.buffer.clear()
        self.cache.invalidate()

    def set_width(self, width: int) -> None:
        self.cache.set_width(width)

    @property
    def wrapped_count(self) -> int:
        return len(self.cache)

    def __len__(self) -> int:
        return len(self.buffer)


@dataclass(frozen=True)
class DashboardState:
    output: OutputPane
    width: int = 0
    height: int = 0
    ready: bool = False
    layout: Layout | None = None
    scroll: ScrollState = ScrollState()
    tasks: tuple[Task, ...] = ()
    progress: ProgressInfo = ProgressInfo()
    session: SessionInfo = SessionInfo()
    worktree: WorktreeInfo | None = None
    tabs: tuple[Tab, ...] = (OUTPUT_TAB,)
    active_tab: int = 0
    file_contents: Mapping[str, str] = field(default_factory=dict)
    file_offsets: Mapping[str, int] = field(default_factory=dict)
    file_mtimes: Mapping[str, float] = field(default_factory=dict)
    now: float | None = None
    quitting: bool = False

    @property
    def viewport_height(self) -> int:
        if self.layout is None or self.layout.too_small:
            return 0
        return self.layout.scroll_height

    @property
    def active(self) -> Tab:
        if 0 <= self.active_tab < len(self.tabs):
            return self.tabs[self.active_tab]
        return OUTPUT_TAB

    @property
    def active_file(self) -> str:
        """Path of the active file tab, or "" when the output tab is active."""
        tab = self.active
        return tab.path if tab.kind == TAB_FILE else ""

    @property
    def show_worktree(self) -> bool:
        return self.worktree is not None and bool(self.worktree.path)


def new_state(config: DashboardConfig | None = None) -> DashboardState:
    capacity = config.max_output_lines if config is not None else DEFAULT_MAX_OUTPUT_LINES
    return DashboardState(output=OutputPane(capacity))


def output_wrap_width(layout: Layout) -> int:
    return max(1, layout.content_width - OUTPUT_PADDING_LEFT)


def file_line_count(content: str) -> int:
    return len(content.split("\n"))


def tab_label(index: int, tab: Tab) -> str:
    """Tab name as shown in the tab bar, with a number hint for the first nine."""
    if index < MAX_NUMBERED_TABS:
        return f"{index + 1}:{tab.name}"
    return tab.name


def build_tabs(session: SessionInfo) -> tuple[Tab, ...]:
    tabs = [OUTPUT_TAB]
    for path in session.spec_files:
        tabs.append(Tab(name="Spec: " + basename(path), kind=TAB_FILE, path=path))
    if session.notes_file:
        tabs.append(Tab(name="Notes", kind=TAB_FILE, path=session.notes_file))
    for path in session.context_file.split(","):
        path = path.strip()
        if path:
            tabs.append(Tab(name="Ctx: " + basename(path), kind=TAB_FILE, path=path))
    return tuple(tabs)


Result = tuple[DashboardState, list[Command]]


# ─────────────────────────────────────────────────────────────────────────────
# Geometry
# ─────────────────────────────────────────────────────────────────────────────

def _relayout(state: DashboardState) -> DashboardState:
    layout = calculate_layout(state.width, state.height, len(state.tasks), state.show_worktree)
    state = replace(state, layout=layout)
    if layout.too_small:
        return state

    state.output.set_width(output_wrap_width(layout))
    viewport = layout.scroll_height
    offsets = {
        path: clamp_file_offset(offset, file_line_count(state.file_contents.get(path, "")), viewport)
        for path, offset in state.file_offsets.items()
    }
    return replace(
        state,
        scroll=state.scroll.reconcile(state.output.wrapped_count, viewport),
        file_offsets=offsets,
    )


def _reconcile_output(state: DashboardState) -> DashboardState:
    viewport = state.viewport_height
    if viewport <= 0:
        return state
    return replace(state, scroll=state.scroll.reconcile(state.output.wrapped_count, viewport))


# ─────────────────────────────────────────────────────────────────────────────
# Tabs
# ─────────────────────────────────────────────────────────────────────────────

def switch_to_tab(state: DashboardState, index: int) -> Result:
    if index < 0 or index >= len(state.tabs):
        return state, []
    state = replace(state, active_tab=index)
    tab = state.tabs[index]
    if tab.kind == TAB_FILE and tab.path and tab.path not in state.file_contents:
        return state, [LoadFile(tab.path)]
    return state, []


def _prev_tab(state: DashboardState) -> Result:
    if state.active_tab > 0:
        return switch_to_tab(state, state.active_tab - 1)
    return state, []


def _next_tab(state: DashboardState) -> Result:
    if state.active_tab < len(state.tabs) - 1:
        return switch_to_tab(state, state.active_tab + 1)
    return state, []


def _cycle_tab(state: DashboardState, step: int) -> Result:
    if len(state.tabs) <= 1:
        return state, []
    return switch_to_tab(state, (state.active_tab + step) % len(state.tabs))


def tab_at_column(state: DashboardState, x: int) -> int | None:
    """Index of the tab drawn at grid column x, or None.

    Mirrors the tab bar rendering: tabs start right of the left border, each
    is its label plus one column of padding either side, separated by one
    column. Tabs that did not fit the bar are not clickable.
    """
    if state.layout is None or state.layout.too_small:
        return None
    content_width = state.layout.content_width
    x -= BORDER_COLUMNS // 2
    current = 0
    for i, tab in enumerate(state.tabs):
        tab_width = visible_width(tab_label(i, tab)) + 2
        sep = 1 if i > 0 else 0
        if current + sep + tab_width > content_width:
            return None
        start = current + sep
        if start <= x < start + tab_width:
            return i
        current = start + tab_width
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Scrolling
# ─────────────────────────────────────────────────────────────────────────────

def _scroll_output(state: DashboardState, move: Callable[[ScrollState, int, int], ScrollState]) -> DashboardState:
    viewport = state.viewport_height
    if viewport <= 0:
        return state
    return replace(state, scroll=move(state.scroll, state.output.wrapped_count, viewport))


def _scroll_active_file(state: DashboardState, delta: int | None, to_end: bool = False) -> DashboardState:
    path = state.active_file
    viewport = state.viewport_height
    if not path or path not in state.file_contents or viewport <= 0:
        return state
    count = file_line_count(state.file_contents[path])
    if delta is None:
        offset = clamp_file_offset(count if to_end else 0, count, viewport)
    else:
        offset = scroll_file(state.file_offsets.get(path, 0), delta, count, viewport)
    return replace(state, file_offsets={**state.file_offsets, path: offset})


def _scroll(state: DashboardState, kind: str) -> DashboardState:
    viewport = state.viewport_height
    if state.active_file:
        if kind == "home":
            return _scroll_active_file(state, None)
        if kind == "end":
            return _scroll_active_file(state, None, to_end=True)
        deltas = {"up": -1, "down": 1, "page_up": -viewport, "page_down": viewport}
        return _scroll_active_file(state, deltas[kind])

    moves = {
        "up": ScrollState.scroll_up,
        "down": ScrollState.scroll_down,
        "page_up": ScrollState.page_up,
        "page_down": ScrollState.page_down,
        "home": ScrollState.home,
        "end": ScrollState.end,
    }
    return _scroll_output(state, moves[kind])


def _reload_active_file(state: DashboardState) -> Result:
    path = state.active_file
    if not path:
        return state, []
    contents = {k: v for k, v in state.file_contents.items() if k != path}
    offsets = {k: v for k, v in state.file_offsets.items() if k != path}
    mtimes = {k: v for k, v in state.file_mtimes.items() if k != path}
    state = replace(state, file_contents=contents, file_offsets=offsets, file_mtimes=mtimes)
    return state, [LoadFile(path)]


# ─────────────────────────────────────────────────────────────────────────────
# Input
# ─────────────────────────────────────────────────────────────────────────────

def _quit(state: DashboardState) -> Result:
    return replace(state, quitting=True), [Quit()]


_KEY_ACTIONS: dict[str, Callable[[DashboardState], Result]] = {
    "q": _quit,
    "ctrl+c": _quit,
    "left": _prev_tab,
    "h": _prev_tab,
    "right": _next_tab,
    "l": _next_tab,
    "tab": lambda s: _cycle_tab(s, 1),
    "shift+tab": lambda s: _cycle_tab(s, -1),
    "r": _reload_active_file,
}

_SCROLL_KEYS = {
    "up": "up",
    "k": "up",
    "down": "down",
    "j": "down",
    "pageUp": "page_up",
    "pageDown": "page_down",
    "home": "home",
    "g": "home",
    "end": "end",
    "G": "end",
}


def _on_key(state: DashboardState, msg: KeyPress) -> Result:
    key = msg.key
    action = _KEY_ACTIONS.get(key)
    if action is not None:
        return action(state)
    if key in _SCROLL_KEYS:
        return _scroll(state, _SCROLL_KEYS[key]), []
    if len(key) == 1 and "1" <= key <= "9":
        return switch_to_tab(state, int(key) - 1)
    return state, []


def _on_mouse(state: DashboardState, msg: Mouse) -> Result:
    event = msg.event
    if event.button == MOUSE_WHEEL_UP:
        return _scroll(state, "up"), []
    if event.button == MOUSE_WHEEL_DOWN:
        return _scroll(state, "down"), []
    if event.button == MOUSE_LEFT and event.pressed and not event.motion and event.y == TAB_BAR_ROW:
        index = tab_at_column(state, event.x)
        if index is not None:
            return switch_to_tab(state, index)
    return state, []


# ─────────────────────────────────────────────────────────────────────────────
# Messages
# ─────────────────────────────────────────────────────────────────────────────

def _on_window_size(state: DashboardState, msg: WindowSize) -> Result:
    state = replace(state, width=msg.width, height=msg.height, ready=True)
    return _relayout(state), []


def _on_output(state: DashboardState, msg: OutputLine) -> Result:
    for line in msg.text.split("\n"):
        state.output.push(line)
    return _reconcile_output(state), []


def _on_clear(state: DashboardState, msg: ClearOutput) -> Result:
    state.output.clear()
    return replace(state, scroll=ScrollState()), []


def _on_tasks(state: DashboardState, msg: TasksUpdated) -> Result:
    state = replace(state, tasks=tuple(msg.tasks))
    if not state.ready:
        return state, []
    return _relayout(state), []


def _on_progress(state: DashboardState, msg: ProgressUpdated) -> Result:
    return replace(state, progress=msg.progress), []


def _on_stats(state: DashboardState, msg: StatsUpdated) -> Result:
    progress = replace(state.progress, tokens_in=msg.tokens_in, tokens_out=msg.tokens_out, cost=msg.cost)
    return replace(state, progress=progress), []


def _on_session(state: DashboardState, msg: SessionUpdated) -> Result:
    tabs = build_tabs(msg.session)
    active = state.active_tab if state.active_tab < len(tabs) else 0
    return replace(state, session=msg.session, tabs=tabs, active_tab=active), []


def _on_worktree(state: DashboardState, msg: WorktreeUpdated) -> Result:
    state = replace(state, worktree=msg.worktree)
    if not state.ready:
        return state, []
    return _relayout(state), []


def _on_file_content(state: DashboardState, msg: FileContent) -> Result:
    content = f"Error loading file: {msg.error}" if msg.error else msg.content
    offset = clamp_file_offset(
        state.file_offsets.get(msg.path, 0), file_line_count(content), state.viewport_height
    )
    return replace(
        state,
        file_contents={**state.file_contents, msg.path: content},
        file_offsets={**state.file_offsets, msg.path: offset},
        file_mtimes={**state.file_mtimes, msg.path: msg.mtime},
    ), []


def _on_file_refresh(state: DashboardState, msg: FileRefreshTick) -> Result:
    path = state.active_file
    if not path:
        return state, []
    return state, [CheckFile(path, state.file_mtimes.get(path, 0.0))]


def _on_timer(state: DashboardState, msg: TimerTick) -> Result:
    return replace(state, now=msg.now), []


_HANDLERS: dict[type, Callable[[DashboardState, Message], Result]] = {
    WindowSize: _on_window_size,
    OutputLine: _on_output,
    ClearOutput: _on_clear,
    TasksUpdated: _on_tasks,
    ProgressUpdated: _on_progress,
    StatsUpdated: _on_stats,
    SessionUpdated: _on_session,
    WorktreeUpdated: _on_worktree,
    FileContent: _on_file_content,
    FileRefreshTick: _on_file_refresh,
    TimerTick: _on_timer,
    KeyPress: _on_key,
    Mouse: _on_mouse,
    Quit: lambda state, msg: _quit(state),
}


def reduce(state: DashboardState, msg: Message) -> Result:
    """Apply one message. Unknown message types leave the state unchanged.

    Quit is accepted as a message as well as returned as a command, so other
    threads can stop the dashboard through Program.send().
    """
    handler = _HANDLERS.get(type(msg))
    if handler is None:
        return state, []
    return handler(state, msg)
