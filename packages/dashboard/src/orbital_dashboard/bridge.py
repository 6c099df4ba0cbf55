"""
Bridge between stream producers and the UI loop.

Producer threads call write() with raw stream-json output. Each line is
parsed, classified and turned into UI messages, which go into a bounded
queue without ever blocking the producer: when the queue is full the new
message is dropped. A single pump thread drains the queue in order and
hands each message to the sink (normally Program.send).
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

from .config import DEFAULT_QUEUE_SIZE
from .formatter import EventFormatter
from .messages import Message, OutputLine, StatsUpdated, TasksUpdated
from .stream import EVENT_ASSISTANT, EVENT_RESULT, StreamParser
from .tasks import TaskTracker

logger = logging.getLogger(__name__)

Sink = Callable[[Message], None]

_CLOSED = object()


class Bridge:
    def __init__(
        self,
        sink: Sink | None = None,
        tracker: TaskTracker | None = None,
        parser: StreamParser | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
        color: bool = True,
    ) -> None:
        self.tracker = tracker if tracker is not None else TaskTracker()
        self.parser = parser if parser is not None else StreamParser()
        self._formatter = EventFormatter(color=color)
        self._sink = sink
        self._queue: queue.Queue = queue.Queue(maxsize=queue_size)
        self._write_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False
        self._closed_by_sink = False
        self.dropped = 0
        self._pump: threading.Thread | None = None
        if sink is not None:
            self._pump = threading.Thread(target=self._run_pump, name="bridge-pump", daemon=True)
            self._pump.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> int:
        """Messages queued but not yet delivered."""
        return self._queue.qsize()

    def drain(self) -> list[Message]:
        """Take every queued message. Only meaningful for a bridge without a sink."""
        messages: list[Message] = []
        while True:
            try:
                msg = self._queue.get_nowait()
            except queue.Empty:
                return messages
            if msg is not _CLOSED:
                messages.append(msg)

    # ─────────────────────────────────────────────────────────────────────
    # Queue
    # ─────────────────────────────────────────────────────────────────────

    def _deliver(self, msg: Message) -> None:
        try:
            self._sink(msg)
        except Exception:
            logger.exception("Bridge sink raised while delivering %s", type(msg).__name__)

    def _run_pump(self) -> None:
        while True:
            msg = self._queue.get()
            if msg is _CLOSED:
                return
            self._deliver(msg)
            if self._closed_by_sink:
                # no sentinel was queued; hand over what is left and stop
                while True:
                    try:
                        msg = self._queue.get_nowait()
                    except queue.Empty:
                        return
                    self._deliver(msg)

    def enqueue(self, msg: Message) -> bool:
        """Queue msg for delivery. Never blocks; returns False if it was dropped."""
        with self._state_lock:
            if self._closed:
                return False
            try:
                self._queue.put_nowait(msg)
            except queue.Full:
                self.dropped += 1
                logger.debug("Bridge queue full, dropped %s (%d dropped so far)", type(msg).__name__, self.dropped)
                return False
            return True

    def close(self) -> None:
        """Stop accepting messages, let the pump drain the queue, and wait for it.

        Safe to call more than once and from any thread.
        """
        with self._state_lock:
            if self._closed:
                return
            self._closed = True

        if self._pump is None:
            return
        if threading.current_thread() is self._pump:
            # the pump cannot wait on its own queue; it stops after this delivery
            self._closed_by_sink = True
            return
        # blocks only while the pump is still delivering earlier messages
        self._queue.put(_CLOSED)
        self._pump.join()

    # ─────────────────────────────────────────────────────────────────────
    # Stream input
    # ─────────────────────────────────────────────────────────────────────

    def write(self, data: str | bytes) -> int:
        """Process a chunk of stream-json output. Returns len(data)."""
        text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
        for line in text.split("\n"):
            line = line.strip()
            if line:
                self.process_line(line)
        return len(data)

    def process_line(self, line: str) -> None:
        with self._write_lock:
            event = self.parser.parse_line(line)
            if event is None:
                return

            if event.tool_name and event.tool_input:
                tasks = self.tracker.process_tool_use(event.tool_name, event.tool_input)
                if tasks is not None:
                    self.enqueue(TasksUpdated(tasks))

            stats = self.parser.stats()
            formatted = self._formatter.format(event, stats)
            if formatted:
                self.enqueue(OutputLine(formatted))

            if event.type in (EVENT_ASSISTANT, EVENT_RESULT):
                if stats.tokens_in > 0 or stats.tokens_out > 0 or stats.cost_usd > 0:
                    self.enqueue(StatsUpdated(stats.tokens_in, stats.tokens_out, stats.cost_usd))
