"""
Formatting of stream events into display text for the output pane.

EventFormatter keeps one bit of state: whether an assistant text run is in
progress, so the thought marker is printed once per run rather than once per
streamed fragment.
"""
from __future__ import annotations

import json
from typing import Any, Callable

from .stream import (
    EVENT_ASSISTANT,
    EVENT_BLOCK_DELTA,
    EVENT_BLOCK_START,
    EVENT_BLOCK_STOP,
    EVENT_ERROR,
    EVENT_RESULT,
    EVENT_SYSTEM,
    EVENT_USER,
    Stats,
    StreamEvent,
)
from .tasks import STATUS_COMPLETED, STATUS_IN_PROGRESS

BASH_SUMMARY_MAX = 50
TODO_CONTENT_MAX = 60
SHORT_RESULT_MAX = 80

THOUGHT_PREFIX = "\n  💭 "


def _sgr(open_code: str, close_code: str) -> Callable[[str], str]:
    return lambda s: f"\x1b[{open_code}m{s}\x1b[{close_code}m"


def _plain(s: str) -> str:
    return s


class StreamColors:
    """The handful of basic ANSI colours used in the output stream."""

    def __init__(self, color: bool = True) -> None:
        if color:
            self.cyan = _sgr("36", "39")
            self.dim = _sgr("2", "22")
            self.green = _sgr("32", "39")
            self.yellow = _sgr("33", "39")
            self.red_bold = _sgr("1;31", "22;39")
        else:
            self.cyan = self.dim = self.green = self.yellow = self.red_bold = _plain


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _json_object(text: str) -> dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def json_field(text: str, name: str) -> str:
    """String value of a top-level field, or "" if absent or not a string."""
    value = _json_object(text).get(name)
    return value if isinstance(value, str) else ""


def shorten_path(path: str) -> str:
    """Keep the last two components of paths with more than three."""
    parts = path.split("/")
    if len(parts) <= 3:
        return path
    return ".../" + "/".join(parts[-2:])


def clean_tool_result(content: str) -> str:
    trimmed = content.strip()
    # numbered file dumps from Read
    if trimmed.startswith("1→") or trimmed.startswith("     1→"):
        return ""
    if content.startswith("/") and "\n" not in content:
        return shorten_path(content)
    if " files" in content or "No files" in content:
        return content
    if content.startswith("Launching skill:"):
        return content
    if content.startswith("Todos have been"):
        return "todos updated"
    if len(content) < SHORT_RESULT_MAX and "\n" not in content:
        return content
    return ""


def format_todo_list(tool_input: str, palette: StreamColors) -> str:
    todos = _json_object(tool_input).get("todos")
    if not isinstance(todos, list):
        return ""

    lines: list[str] = []
    for todo in todos:
        if not isinstance(todo, dict):
            continue
        content = todo.get("content")
        if not isinstance(content, str) or not content:
            continue
        if len(content) > TODO_CONTENT_MAX:
            content = content[:TODO_CONTENT_MAX] + "..."
        status = todo.get("status")
        if status == STATUS_COMPLETED:
            marker = palette.green("✓")
        elif status == STATUS_IN_PROGRESS:
            marker = palette.yellow("▶")
        else:
            marker = palette.dim("○")
        lines.append(f"      {marker} {content}")

    if not lines:
        return ""
    return "\n" + "\n".join(lines)


def format_tool_summary(tool_name: str, tool_input: str, palette: StreamColors | None = None) -> str:
    """Short description of a tool call, with a leading space, or ""."""
    if not tool_input:
        return ""

    if tool_name in ("Read", "Write", "Edit"):
        path = json_field(tool_input, "file_path")
        return " " + shorten_path(path) if path else ""
    if tool_name in ("Glob", "Grep"):
        pattern = json_field(tool_input, "pattern")
        return " " + pattern if pattern else ""
    if tool_name == "Bash":
        command = json_field(tool_input, "command")
        if len(command) > BASH_SUMMARY_MAX:
            command = command[:BASH_SUMMARY_MAX] + "..."
        return " " + command if command else ""
    if tool_name == "Skill":
        skill = json_field(tool_input, "skill")
        return " " + skill if skill else ""
    if tool_name == "TaskCreate":
        subject = json_field(tool_input, "subject")
        return " " + subject if subject else ""
    if tool_name == "TaskUpdate":
        task_id = json_field(tool_input, "taskId")
        if not task_id:
            return ""
        status = json_field(tool_input, "status")
        return f" #{task_id} -> {status}" if status else f" #{task_id}"
    if tool_name == "TodoWrite":
        return format_todo_list(tool_input, palette or StreamColors(color=False))
    return ""


def format_count(n: int) -> str:
    return f"{n:,}"


def format_result_line(stats: Stats) -> str:
    return (
        f"  --- tokens: {format_count(stats.tokens_in)} in, {format_count(stats.tokens_out)} out"
        f" | cost: ${stats.cost_usd:.4f} ---"
    )


# ─────────────────────────────────────────────────────────────────────────────
# EventFormatter
# ─────────────────────────────────────────────────────────────────────────────

class EventFormatter:
    """Not thread-safe; the Bridge calls it under its own lock."""

    def __init__(self, color: bool = True) -> None:
        self.palette = StreamColors(color)
        self.text_shown = False

    def _tool_line(self, event: StreamEvent) -> str:
        p = self.palette
        summary = format_tool_summary(event.tool_name, event.tool_input, p)
        return p.cyan("  → ") + p.cyan(event.tool_name) + p.dim(summary)

    def _text(self, content: str) -> str:
        prefix = ""
        if not self.text_shown:
            prefix = THOUGHT_PREFIX
            self.text_shown = True
        return prefix + self.palette.yellow(content)

    def format(self, event: StreamEvent, stats: Stats) -> str:
        """Display text for event ("" when it shows nothing)."""
        p = self.palette
        kind = event.type

        if kind == EVENT_SYSTEM and event.content:
            self.text_shown = False
            return p.dim("⚙ " + event.content)

        if kind == EVENT_BLOCK_START and event.content == "tool_use" and event.tool_name:
            self.text_shown = False
            return self._tool_line(event)

        if kind == EVENT_BLOCK_STOP:
            self.text_shown = False
            return ""

        if kind == EVENT_ASSISTANT:
            if event.tool_name:
                self.text_shown = False
                return self._tool_line(event)
            if event.content:
                return self._text(event.content)

        if kind == EVENT_BLOCK_DELTA and event.content:
            return self._text(event.content)

        if kind == EVENT_USER and event.content:
            self.text_shown = False
            cleaned = clean_tool_result(event.content)
            if not cleaned:
                return ""
            return p.green("    ✓ ") + p.dim(cleaned)

        if kind == EVENT_ERROR and event.content:
            self.text_shown = False
            return p.red_bold("✗ Error: " + event.content)

        if kind == EVENT_RESULT:
            self.text_shown = False
            return format_result_line(stats)

        return ""
