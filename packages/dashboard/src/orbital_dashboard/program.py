"""
Program: the single-threaded UI loop.

Terminal input, resize notifications and Bridge deliveries can arrive on
any thread; send() hops them onto the asyncio loop with
call_soon_threadsafe. The loop feeds each message through reduce(),
executes the returned commands, and redraws the rows that changed inside
synchronized-output brackets.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time

from orbital_tui.keys import is_mouse_sequence, parse_key, parse_mouse
from orbital_tui.terminal import SYNC_BEGIN, SYNC_END, Terminal

from .bridge import Bridge
from .config import APP_NAME, DashboardConfig
from .files import file_mtime, load_file
from .messages import (
    CheckFile,
    ClearOutput,
    Command,
    FileRefreshTick,
    KeyPress,
    LoadFile,
    Message,
    Mouse,
    ProgressInfo,
    ProgressUpdated,
    Quit,
    SessionInfo,
    SessionUpdated,
    TimerTick,
    WindowSize,
    WorktreeInfo,
    WorktreeUpdated,
)
from .model import DashboardState, new_state, reduce
from .render import render
from .styles import Styles, get_styles

logger = logging.getLogger(__name__)


class Program:
    def __init__(
        self,
        terminal: Terminal,
        config: DashboardConfig | None = None,
        styles: Styles | None = None,
    ) -> None:
        self.config = config if config is not None else DashboardConfig()
        self.styles = styles if styles is not None else get_styles(self.config.theme, self.config.no_color)
        self.terminal = terminal
        self.state: DashboardState = new_state(self.config)

        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._inbox: asyncio.Queue[Message] | None = None
        self._pending: list[Message] = []
        self._finished = False
        self._jobs: set[asyncio.Task] = set()

        self._previous_rows: list[str] = []
        self._previous_size = (0, 0)
        self.full_redraws = 0

        self.bridge = Bridge(
            sink=self.send,
            queue_size=self.config.queue_size,
            color=not self.config.no_color,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Thread-safe entry points
    # ─────────────────────────────────────────────────────────────────────

    def send(self, msg: Message) -> None:
        """Deliver msg to the UI loop. Safe from any thread, before or during run()."""
        with self._lock:
            if self._finished:
                logger.debug("Program finished, dropping %s", type(msg).__name__)
                return
            if self._loop is None or self._inbox is None:
                self._pending.append(msg)
                return
            self._loop.call_soon_threadsafe(self._inbox.put_nowait, msg)

    def send_progress(self, progress: ProgressInfo) -> None:
        self.send(ProgressUpdated(progress))

    def send_session(self, session: SessionInfo) -> None:
        self.send(SessionUpdated(session))

    def send_worktree(self, worktree: WorktreeInfo | None) -> None:
        self.send(WorktreeUpdated(worktree))

    def clear_output(self) -> None:
        self.send(ClearOutput())

    def quit(self) -> None:
        self.send(Quit())

    # ─────────────────────────────────────────────────────────────────────
    # Terminal callbacks (reader thread / signal handler)
    # ─────────────────────────────────────────────────────────────────────

    def _on_input(self, data: str) -> None:
        if is_mouse_sequence(data):
            event = parse_mouse(data)
            if event is not None:
                self.send(Mouse(event))
            return
        key = parse_key(data)
        if key is not None:
            self.send(KeyPress(key))

    def _on_resize(self) -> None:
        self.send(WindowSize(self.terminal.columns, self.terminal.rows))

    # ─────────────────────────────────────────────────────────────────────
    # Loop
    # ─────────────────────────────────────────────────────────────────────

    async def run(self) -> None:
        """Run until a quit key or Quit message. Restores the terminal on the way out."""
        loop = asyncio.get_running_loop()
        inbox: asyncio.Queue[Message] = asyncio.Queue()
        with self._lock:
            self._loop = loop
            self._inbox = inbox
            for msg in self._pending:
                inbox.put_nowait(msg)
            self._pending = []

        self.terminal.start(self._on_input, self._on_resize)
        self.terminal.hide_cursor()
        self.terminal.set_title(APP_NAME)
        tickers = [
            loop.create_task(self._every(self.config.file_refresh_interval, FileRefreshTick)),
            loop.create_task(self._every(self.config.timer_interval, lambda: TimerTick(time.time()))),
        ]
        try:
            self._apply(WindowSize(self.terminal.columns, self.terminal.rows))
            self._render()
            while not self.state.quitting:
                self._apply(await inbox.get())
                while not self.state.quitting and not inbox.empty():
                    self._apply(inbox.get_nowait())
                if not self.state.quitting:
                    self._render()
        finally:
            with self._lock:
                self._finished = True
                self._loop = None
                self._inbox = None
            for task in [*tickers, *self._jobs]:
                task.cancel()
            await asyncio.gather(*tickers, *self._jobs, return_exceptions=True)
            self.terminal.show_cursor()
            self.terminal.stop()
            self.bridge.close()

    async def _every(self, interval: float, make) -> None:
        while True:
            await asyncio.sleep(interval)
            self._post(make())

    def _post(self, msg: Message) -> None:
        if self._inbox is not None:
            self._inbox.put_nowait(msg)

    def _apply(self, msg: Message) -> None:
        self.state, commands = reduce(self.state, msg)
        for command in commands:
            self._execute(command)

    def _execute(self, command: Command) -> None:
        if isinstance(command, LoadFile):
            self._spawn(self._load(command.path))
        elif isinstance(command, CheckFile):
            self._spawn(self._check(command))

    def _spawn(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._jobs.add(task)
        task.add_done_callback(self._jobs.discard)

    async def _load(self, path: str) -> None:
        self._post(await load_file(path, self.config.max_file_size))

    async def _check(self, command: CheckFile) -> None:
        mtime = file_mtime(command.path)
        if mtime is not None and mtime > command.known_mtime:
            logger.debug("%s changed on disk, reloading", command.path)
            await self._load(command.path)

    # ─────────────────────────────────────────────────────────────────────
    # Output
    # ─────────────────────────────────────────────────────────────────────

    def _render(self) -> None:
        try:
            rows = render(self.state, self.styles)
        except Exception:
            logger.exception("Render failed")
            raise

        size = (self.state.width, self.state.height)
        if size != self._previous_size or len(rows) != len(self._previous_rows):
            self.full_redraws += 1
            self.terminal.write(SYNC_BEGIN + "\x1b[2J\x1b[H" + "\r\n".join(rows) + SYNC_END)
        else:
            changed = [
                f"\x1b[{i + 1};1H{row}"
                for i, (row, old) in enumerate(zip(rows, self._previous_rows))
                if row != old
            ]
            if changed:
                self.terminal.write(SYNC_BEGIN + "".join(changed) + SYNC_END)

        self._previous_rows = rows
        self._previous_size = size
