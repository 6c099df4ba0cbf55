"""
orbital_dashboard — terminal dashboard for an autonomous coding-agent loop.

Streaming agent output, task status, token/cost metrics and file tabs in
a fixed character grid. Producers feed raw stream-json into a Bridge; the
Program's UI loop reduces the resulting messages into a DashboardState and
renders it.
"""
from .bridge import Bridge
from .config import VERSION, DashboardConfig
from .layout import Layout, calculate_layout
from .messages import (
    ClearOutput,
    FileContent,
    OutputLine,
    ProgressInfo,
    ProgressUpdated,
    SessionInfo,
    SessionUpdated,
    StatsUpdated,
    TasksUpdated,
    WorktreeInfo,
    WorktreeUpdated,
)
from .model import DashboardState, new_state, reduce
from .program import Program
from .render import render
from .ringbuffer import LineBuffer
from .scroll import ScrollState
from .stream import Stats, StreamEvent, StreamParser
from .styles import Styles, get_styles
from .tasks import Task, TaskTracker
from .wrap import wrap_line
from .wrap_cache import WrappedLine, WrappedLineCache

__version__ = VERSION

__all__ = [
    "Bridge",
    "ClearOutput",
    "DashboardConfig",
    "DashboardState",
    "FileContent",
    "Layout",
    "LineBuffer",
    "OutputLine",
    "Program",
    "ProgressInfo",
    "ProgressUpdated",
    "ScrollState",
    "SessionInfo",
    "SessionUpdated",
    "Stats",
    "StatsUpdated",
    "StreamEvent",
    "StreamParser",
    "Styles",
    "Task",
    "TaskTracker",
    "TasksUpdated",
    "WorktreeInfo",
    "WorktreeUpdated",
    "WrappedLine",
    "WrappedLineCache",
    "calculate_layout",
    "get_styles",
    "new_state",
    "reduce",
    "render",
    "wrap_line",
]
