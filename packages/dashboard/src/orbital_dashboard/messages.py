"""
Messages consumed by the dashboard reducer, and the commands it returns.

Bridge messages originate on producer threads and reach the UI loop through
the Bridge queue; input messages (keys, mouse, resize, ticks) originate in
the Program. Every message is handled once by reduce() and then dropped.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from orbital_tui.keys import MouseEvent

from .tasks import Task

# ─────────────────────────────────────────────────────────────────────────────
# Info payloads
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProgressInfo:
    iteration: int = 1
    max_iteration: int = 50
    step_name: str = ""
    step_position: int = 0
    step_total: int = 0
    gate_retries: int = 0
    max_retries: int = 0
    tokens_in: int = 0
    tokens_out: int = 0
    cost: float = 0.0
    budget: float = 0.0
    context_window: int = 0
    iteration_timeout: float = 0.0     # seconds, 0 hides the countdown
    iteration_start: float | None = None  # time.time() when the iteration began
    is_gate_step: bool = False
    workflow_name: str = ""


@dataclass(frozen=True)
class SessionInfo:
    spec_files: tuple[str, ...] = ()
    notes_file: str = ""
    state_file: str = ""
    context_file: str = ""   # comma-separated list


@dataclass(frozen=True)
class WorktreeInfo:
    path: str = ""
    branch: str = ""


# ─────────────────────────────────────────────────────────────────────────────
# Bridge messages
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class OutputLine:
    text: str


@dataclass(frozen=True)
class TasksUpdated:
    tasks: tuple[Task, ...]


@dataclass(frozen=True)
class ProgressUpdated:
    progress: ProgressInfo


@dataclass(frozen=True)
class SessionUpdated:
    session: SessionInfo


@dataclass(frozen=True)
class StatsUpdated:
    tokens_in: int
    tokens_out: int
    cost: float


@dataclass(frozen=True)
class WorktreeUpdated:
    worktree: WorktreeInfo | None


@dataclass(frozen=True)
class FileContent:
    path: str
    content: str = ""
    error: str = ""
    mtime: float = 0.0


@dataclass(frozen=True)
class ClearOutput:
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Input messages
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class WindowSize:
    width: int
    height: int


@dataclass(frozen=True)
class KeyPress:
    key: str


@dataclass(frozen=True)
class Mouse:
    event: MouseEvent


@dataclass(frozen=True)
class FileRefreshTick:
    pass


@dataclass(frozen=True)
class TimerTick:
    now: float


Message = Union[
    OutputLine, TasksUpdated, ProgressUpdated, SessionUpdated, StatsUpdated,
    WorktreeUpdated, FileContent, ClearOutput,
    WindowSize, KeyPress, Mouse, FileRefreshTick, TimerTick,
]

# ─────────────────────────────────────────────────────────────────────────────
# Commands returned by reduce() for the Program to execute
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class LoadFile:
    path: str


@dataclass(frozen=True)
class CheckFile:
    """Reload path if its mtime is newer than known_mtime."""
    path: str
    known_mtime: float = 0.0


Command = Union[Quit, LoadFile, CheckFile]


TAB_OUTPUT = "output"
TAB_FILE = "file"


@dataclass(frozen=True)
class Tab:
    name: str
    kind: str = TAB_OUTPUT
    path: str = ""


OUTPUT_TAB = Tab(name="Output")
