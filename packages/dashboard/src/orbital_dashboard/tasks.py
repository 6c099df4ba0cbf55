"""
Task tracking from the agent's task tools.

The TaskTracker turns TaskCreate / TaskUpdate / TodoWrite tool calls into
an ordered task list. Every successful update returns a snapshot tuple of
immutable Task objects; None means the call changed nothing (malformed
payload, missing required field, unknown task ID, empty todo list).
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from typing import NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"

TOOL_TASK_CREATE = "TaskCreate"
TOOL_TASK_UPDATE = "TaskUpdate"
TOOL_TODO_WRITE = "TodoWrite"

TASK_TOOLS = frozenset({TOOL_TASK_CREATE, TOOL_TASK_UPDATE, TOOL_TODO_WRITE})


@dataclass(frozen=True)
class Task:
    id: str
    content: str
    status: str = STATUS_PENDING
    active_form: str = ""


class TaskSummary(NamedTuple):
    total: int
    completed: int
    in_progress: int
    pending: int


# ─────────────────────────────────────────────────────────────────────────────
# Tool payloads
# ─────────────────────────────────────────────────────────────────────────────

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class TaskCreateInput(_Payload):
    subject: str = ""
    description: str = ""
    active_form: str = Field("", alias="activeForm")


class TaskUpdateInput(_Payload):
    task_id: str = Field("", alias="taskId")
    status: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    active_form: Optional[str] = Field(None, alias="activeForm")


class TodoItem(_Payload):
    content: str = ""
    status: str = ""
    active_form: str = Field("", alias="activeForm")


class TodoWriteInput(_Payload):
    todos: list[TodoItem] = Field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# TaskTracker
# ─────────────────────────────────────────────────────────────────────────────

class TaskTracker:
    """Thread-safe ordered task list. Readers only ever receive snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tasks: dict[str, Task] = {}
        self._order: list[str] = []

    @staticmethod
    def is_task_tool(tool_name: str) -> bool:
        return tool_name in TASK_TOOLS

    def process_tool_use(self, tool_name: str, tool_input: str) -> tuple[Task, ...] | None:
        """Apply one task tool call. Returns the new task list, or None when nothing changed."""
        try:
            if tool_name == TOOL_TASK_CREATE:
                return self._create(TaskCreateInput.model_validate_json(tool_input))
            if tool_name == TOOL_TASK_UPDATE:
                return self._update(TaskUpdateInput.model_validate_json(tool_input))
            if tool_name == TOOL_TODO_WRITE:
                return self._replace_all(TodoWriteInput.model_validate_json(tool_input))
        except ValidationError as e:
            logger.debug("Ignoring malformed %s payload: %s", tool_name, e.errors(include_url=False))
        return None

    def _snapshot(self) -> tuple[Task, ...]:
        return tuple(self._tasks[task_id] for task_id in self._order)

    def _create(self, payload: TaskCreateInput) -> tuple[Task, ...] | None:
        if not payload.subject:
            return None
        with self._lock:
            next_id = len(self._order) + 1
            # a bulk replace with skipped entries can leave this ID taken
            while str(next_id) in self._tasks:
                next_id += 1
            task_id = str(next_id)
            self._tasks[task_id] = Task(
                id=task_id,
                content=payload.subject,
                status=STATUS_PENDING,
                active_form=payload.active_form,
            )
            self._order.append(task_id)
            return self._snapshot()

    def _update(self, payload: TaskUpdateInput) -> tuple[Task, ...] | None:
        if not payload.task_id:
            return None
        with self._lock:
            task = self._tasks.get(payload.task_id)
            if task is None:
                return None
            changes: dict[str, str] = {}
            if payload.status is not None:
                changes["status"] = payload.status
            if payload.subject is not None:
                changes["content"] = payload.subject
            if payload.active_form is not None:
                changes["active_form"] = payload.active_form
            self._tasks[task.id] = replace(task, **changes)
            return self._snapshot()

    def _replace_all(self, payload: TodoWriteInput) -> tuple[Task, ...] | None:
        if not payload.todos:
            return None
        with self._lock:
            self._tasks = {}
            self._order = []
            for i, todo in enumerate(payload.todos):
                if not todo.content:
                    continue
                # IDs follow list position, so skipped entries leave gaps
                task_id = str(i + 1)
                self._tasks[task_id] = Task(
                    id=task_id,
                    content=todo.content,
                    status=todo.status or STATUS_PENDING,
                    active_form=todo.active_form,
                )
                self._order.append(task_id)
            return self._snapshot()

    def get_tasks(self) -> tuple[Task, ...]:
        with self._lock:
            return self._snapshot()

    def get_summary(self) -> TaskSummary:
        with self._lock:
            tasks = self._snapshot()
        completed = sum(1 for t in tasks if t.status == STATUS_COMPLETED)
        in_progress = sum(1 for t in tasks if t.status == STATUS_IN_PROGRESS)
        pending = sum(1 for t in tasks if t.status == STATUS_PENDING)
        return TaskSummary(len(tasks), completed, in_progress, pending)

    def clear(self) -> None:
        with self._lock:
            self._tasks = {}
            self._order = []
