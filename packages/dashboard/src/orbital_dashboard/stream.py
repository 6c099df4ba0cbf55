"""
Parser for the coding agent's stream-json output.

Each non-blank line is one JSON object with a "type" field. parse_line()
turns it into a StreamEvent and keeps running token/cost totals, available
as a Stats snapshot via stats().
"""
from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

EVENT_SYSTEM = "system"
EVENT_ASSISTANT = "assistant"
EVENT_USER = "user"
EVENT_RESULT = "result"
EVENT_ERROR = "error"
EVENT_BLOCK_START = "content_block_start"
EVENT_BLOCK_DELTA = "content_block_delta"
EVENT_BLOCK_STOP = "content_block_stop"

KNOWN_EVENT_TYPES = frozenset({
    EVENT_SYSTEM, EVENT_ASSISTANT, EVENT_USER, EVENT_RESULT, EVENT_ERROR,
    EVENT_BLOCK_START, EVENT_BLOCK_DELTA, EVENT_BLOCK_STOP,
})

TOOL_RESULT_MAX_CHARS = 100


@dataclass
class StreamEvent:
    type: str
    content: str = ""
    tool_name: str = ""
    tool_id: str = ""
    tool_input: str = ""


@dataclass(frozen=True)
class Stats:
    tokens_in: int = 0
    tokens_out: int = 0
    cost_usd: float = 0.0
    duration_ms: int = 0


def _dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _int(value: Any) -> int:
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _usage_tokens(usage: dict[str, Any]) -> tuple[int, int]:
    tokens_in = (
        _int(usage.get("input_tokens"))
        + _int(usage.get("cache_creation_input_tokens"))
        + _int(usage.get("cache_read_input_tokens"))
    )
    return tokens_in, _int(usage.get("output_tokens"))


def _dump_input(value: Any) -> str:
    if value is None:
        return ""
    return json.dumps(value, separators=(",", ":"))


class StreamParser:
    """
    Stateful stream-json parser.

    Token counts from assistant messages are provisional for the current
    turn; a result event folds its usage into the running totals and resets
    the provisional part.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cost = 0.0
        self._duration_ms = 0
        self._result_in = 0
        self._result_out = 0
        self._assistant_in = 0
        self._assistant_out = 0
        self.known_events = 0
        self.unknown_events: dict[str, int] = {}

    def stats(self) -> Stats:
        with self._lock:
            return Stats(
                tokens_in=self._result_in + self._assistant_in,
                tokens_out=self._result_out + self._assistant_out,
                cost_usd=self._cost,
                duration_ms=self._duration_ms,
            )

    def parse_line(self, line: str | bytes) -> StreamEvent | None:
        """Parse one line. Returns None for blank lines and anything that is not a JSON object."""
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        line = line.strip()
        if not line:
            return None
        try:
            raw = json.loads(line)
        except json.JSONDecodeError:
            return None
        if not isinstance(raw, dict):
            return None
        event_type = raw.get("type", "")
        if not isinstance(event_type, str):
            return None

        with self._lock:
            self._count(event_type)
            event = StreamEvent(type=event_type)
            if event_type == EVENT_ASSISTANT:
                self._parse_assistant(raw, event)
            elif event_type == EVENT_USER:
                self._parse_user(raw, event)
            elif event_type == EVENT_RESULT:
                self._parse_result(raw)
                event.content = _str(raw.get("subtype"))
            elif event_type == EVENT_ERROR:
                event.content = _str(_dict(raw.get("error")).get("message"))
            elif event_type == EVENT_BLOCK_DELTA:
                event.content = _str(_dict(raw.get("delta")).get("text"))
            elif event_type == EVENT_BLOCK_START:
                self._parse_block_start(raw, event)
            elif event_type == EVENT_SYSTEM:
                event.content = _str(raw.get("message"))
        return event

    def _count(self, event_type: str) -> None:
        if not event_type:
            return
        if event_type in KNOWN_EVENT_TYPES:
            self.known_events += 1
            return
        seen = self.unknown_events.get(event_type, 0)
        self.unknown_events[event_type] = seen + 1
        if not seen:
            logger.warning(
                "Unrecognised event type %r in agent output; the agent CLI version may be incompatible",
                event_type,
            )

    def _parse_assistant(self, raw: dict[str, Any], event: StreamEvent) -> None:
        message = _dict(raw.get("message"))
        text: list[str] = []
        for block in message.get("content") or []:
            block = _dict(block)
            kind = block.get("type")
            if kind == "text":
                text.append(_str(block.get("text")))
            elif kind == "tool_use":
                event.tool_name = _str(block.get("name"))
                event.tool_id = _str(block.get("id"))
                event.tool_input = _dump_input(block.get("input"))
        event.content = "".join(text)

        usage = message.get("usage")
        if isinstance(usage, dict):
            self._assistant_in, self._assistant_out = _usage_tokens(usage)

    def _parse_user(self, raw: dict[str, Any], event: StreamEvent) -> None:
        filenames = _dict(raw.get("tool_use_result")).get("filenames") or []
        if isinstance(filenames, list) and filenames:
            event.content = _str(filenames[0]) if len(filenames) == 1 else f"{len(filenames)} files"

        message = _dict(raw.get("message"))
        for block in message.get("content") or []:
            block = _dict(block)
            if block.get("type") != "tool_result":
                continue
            event.tool_id = _str(block.get("tool_use_id"))
            content = _str(block.get("content"))
            if not event.content and content:
                if len(content) > TOOL_RESULT_MAX_CHARS:
                    content = content[:TOOL_RESULT_MAX_CHARS] + "..."
                event.content = content

    def _parse_result(self, raw: dict[str, Any]) -> None:
        cost = raw.get("total_cost_usd")
        if isinstance(cost, (int, float)) and not isinstance(cost, bool):
            self._cost += float(cost)
        self._duration_ms += _int(raw.get("duration_ms"))

        usage = raw.get("usage")
        if isinstance(usage, dict):
            tokens_in, tokens_out = _usage_tokens(usage)
            self._result_in += tokens_in
            self._result_out += tokens_out
            self._assistant_in = 0
            self._assistant_out = 0

    def _parse_block_start(self, raw: dict[str, Any], event: StreamEvent) -> None:
        block = _dict(raw.get("content_block"))
        event.content = _str(block.get("type"))
        if event.content == "tool_use":
            event.tool_name = _str(block.get("name"))
            event.tool_id = _str(block.get("id"))
            event.tool_input = _dump_input(block.get("input"))
