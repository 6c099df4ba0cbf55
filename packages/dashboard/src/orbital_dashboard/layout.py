"""
Panel layout engine.

calculate_layout() maps terminal dimensions and the task count onto exact
panel heights. When the result is not too small, every panel height plus
the border rows adds up to the terminal height.

Row order of the grid:

    ╔══╗  top border
    header
    ╠══╣
    tab bar
    ╠══╣
    scroll area (output stream or file)
    ╠══╣
    tasks            (only when the task panel is shown)
    ╠══╣             (only when the task panel is shown)
    progress (3 rows)
    ╠══╣
    session (2 rows, +1 worktree row)
    ╚══╝  bottom border
    help bar (unbordered)
"""
from __future__ import annotations

from dataclasses import dataclass

MIN_WIDTH = 80
MIN_HEIGHT = 24

HEADER_HEIGHT = 1
TAB_BAR_HEIGHT = 1
PROGRESS_HEIGHT = 3
SESSION_HEIGHT = 2
WORKTREE_HEIGHT = 1
HELP_HEIGHT = 1

MAX_VISIBLE_TASKS = 6
MIN_SCROLL_WITH_TASKS = 4
MIN_SCROLL_HEIGHT = 2

# top, below header, below tab bar, below scroll area, below progress, bottom
BASE_BORDER_ROWS = 6

BORDER_COLUMNS = 2

TOO_NARROW_MESSAGE = f"Terminal too narrow. Minimum width: {MIN_WIDTH} columns."
TOO_SHORT_MESSAGE = f"Terminal too short. Minimum height: {MIN_HEIGHT} rows."
TOO_SHORT_FOR_UI_MESSAGE = "Terminal too short to display UI."


@dataclass(frozen=True)
class Layout:
    width: int
    height: int
    header_height: int = 0
    tab_bar_height: int = 0
    scroll_height: int = 0
    task_height: int = 0
    progress_height: int = 0
    session_height: int = 0
    worktree_height: int = 0
    help_height: int = 0
    border_rows: int = 0
    too_small: bool = False
    too_small_message: str = ""

    @property
    def content_width(self) -> int:
        return max(0, self.width - BORDER_COLUMNS)

    @property
    def tasks_visible(self) -> int:
        """Task rows below the panel's header row."""
        return self.task_height - 1 if self.task_height > 1 else 0

    def has_task_overflow(self, task_count: int) -> bool:
        return task_count > self.tasks_visible

    @property
    def total_rows(self) -> int:
        return (
            self.header_height
            + self.tab_bar_height
            + self.scroll_height
            + self.task_height
            + self.progress_height
            + self.session_height
            + self.worktree_height
            + self.help_height
            + self.border_rows
        )


def task_panel_height(task_count: int) -> int:
    if task_count <= 0:
        return 0
    return min(task_count, MAX_VISIBLE_TASKS) + 1


def _too_small(width: int, height: int, message: str) -> Layout:
    return Layout(width=width, height=height, too_small=True, too_small_message=message)


def calculate_layout(width: int, height: int, task_count: int = 0, show_worktree: bool = False) -> Layout:
    """Compute panel heights for a width x height terminal."""
    if width < MIN_WIDTH:
        return _too_small(width, height, TOO_NARROW_MESSAGE)
    if height < MIN_HEIGHT:
        return _too_small(width, height, TOO_SHORT_MESSAGE)

    worktree = WORKTREE_HEIGHT if show_worktree else 0
    fixed = HEADER_HEIGHT + TAB_BAR_HEIGHT + PROGRESS_HEIGHT + SESSION_HEIGHT + worktree + HELP_HEIGHT

    tasks = task_panel_height(task_count)
    borders = BASE_BORDER_ROWS + (1 if tasks else 0)
    scroll = height - fixed - tasks - borders

    if scroll < MIN_SCROLL_WITH_TASKS and tasks:
        tasks = 0
        borders = BASE_BORDER_ROWS
        scroll = height - fixed - borders

    if scroll < MIN_SCROLL_HEIGHT:
        return _too_small(width, height, TOO_SHORT_FOR_UI_MESSAGE)

    return Layout(
        width=width,
        height=height,
        header_height=HEADER_HEIGHT,
        tab_bar_height=TAB_BAR_HEIGHT,
        scroll_height=scroll,
        task_height=tasks,
        progress_height=PROGRESS_HEIGHT,
        session_height=SESSION_HEIGHT,
        worktree_height=worktree,
        help_height=HELP_HEIGHT,
        border_rows=borders,
    )
