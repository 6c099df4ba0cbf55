"""
CLI entry point.

  orbital-dash replay FILE        live dashboard fed from a stream-json capture
  orbital-dash layout W H         panel geometry for a terminal size
  orbital-dash render W H FILE    one frame, printed without a live terminal
"""
from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from typing import Iterable, List, Optional

import typer
from pydantic import ValidationError
from rich.console import Console

from orbital_tui.terminal import ProcessTerminal

from .bridge import Bridge
from .config import APP_NAME, DashboardConfig
from .files import load_file
from .layout import calculate_layout
from .messages import FileContent, ProgressInfo, SessionInfo, SessionUpdated, WindowSize
from .model import new_state, reduce, switch_to_tab
from .program import Program
from .render import render as render_frame
from .styles import get_styles

app = typer.Typer(
    name="orbital-dash",
    help="Orbital terminal dashboard for coding-agent runs",
    no_args_is_help=True,
)

console = Console()

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(log_file: str | None) -> None:
    """Send package logs to log_file, or nowhere: the dashboard owns the screen."""
    for name in ("orbital_dashboard", "orbital_tui"):
        logger = logging.getLogger(name)
        if log_file:
            os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
            handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.setLevel(logging.DEBUG)
            logger.propagate = False
        else:
            handler = logging.NullHandler()
        logger.handlers = [handler]


def _load_config(**overrides) -> DashboardConfig:
    try:
        return DashboardConfig.from_env(**overrides)
    except ValidationError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(code=2)


def _read_lines(path: str) -> list[str]:
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read().splitlines()
    except OSError as e:
        console.print(f"[red]Cannot read {path}:[/red] {e}")
        raise typer.Exit(code=1)


def _session(spec: List[str], notes: str, state: str, context: str) -> SessionInfo:
    return SessionInfo(spec_files=tuple(spec), notes_file=notes, state_file=state, context_file=context)


def _feed(bridge: Bridge, lines: Iterable[str], delay: float) -> None:
    for line in lines:
        bridge.write(line + "\n")
        if delay > 0:
            time.sleep(delay)


@app.command()
def replay(
    file: str = typer.Argument(..., help="stream-json capture to replay"),
    spec: List[str] = typer.Option([], "--spec", help="Spec file (repeatable)"),
    notes: str = typer.Option("", "--notes", help="Notes file"),
    state: str = typer.Option("", "--state", help="State file"),
    context: str = typer.Option("", "--context", help="Context files, comma-separated"),
    theme: Optional[str] = typer.Option(None, "--theme", help="auto, dark or light"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour"),
    delay: float = typer.Option(0.05, "--delay", help="Seconds between replayed lines"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Write debug logs here"),
) -> None:
    """Replay a capture through the live dashboard. Press q to quit."""
    config = _load_config(theme=theme, no_color=no_color or None, log_file=log_file)
    setup_logging(config.log_file)
    lines = _read_lines(file)

    program = Program(ProcessTerminal(mouse=config.mouse), config)
    program.send_session(_session(spec, notes, state, context))
    program.send_progress(ProgressInfo(iteration=1, max_iteration=1, step_name="replay"))

    producer = threading.Thread(
        target=_feed, args=(program.bridge, lines, delay), name="replay-feed", daemon=True
    )
    producer.start()
    asyncio.run(program.run())


@app.command()
def layout(
    width: int = typer.Argument(..., help="Terminal columns"),
    height: int = typer.Argument(..., help="Terminal rows"),
    tasks: int = typer.Option(0, "--tasks", help="Number of tasks"),
    worktree: bool = typer.Option(False, "--worktree", help="Show the worktree row"),
) -> None:
    """Print the panel geometry for a terminal size."""
    from rich.table import Table

    result = calculate_layout(width, height, tasks, worktree)
    if result.too_small:
        console.print(f"[yellow]{result.too_small_message}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Layout {width}x{height}, {tasks} tasks")
    table.add_column("Panel")
    table.add_column("Rows", justify="right")
    for name, rows in (
        ("header", result.header_height),
        ("tab bar", result.tab_bar_height),
        ("scroll area", result.scroll_height),
        ("tasks", result.task_height),
        ("progress", result.progress_height),
        ("session", result.session_height),
        ("worktree", result.worktree_height),
        ("help", result.help_height),
        ("borders", result.border_rows),
    ):
        table.add_row(name, str(rows))
    table.add_row("total", str(result.total_rows))
    console.print(table)


@app.command()
def render(
    width: int = typer.Argument(..., help="Terminal columns"),
    height: int = typer.Argument(..., help="Terminal rows"),
    file: str = typer.Argument(..., help="stream-json capture to replay"),
    spec: List[str] = typer.Option([], "--spec", help="Spec file (repeatable)"),
    notes: str = typer.Option("", "--notes", help="Notes file"),
    state: str = typer.Option("", "--state", help="State file"),
    context: str = typer.Option("", "--context", help="Context files, comma-separated"),
    tab: int = typer.Option(1, "--tab", help="Tab to show (1-based)"),
    theme: Optional[str] = typer.Option(None, "--theme", help="auto, dark or light"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colour"),
) -> None:
    """Replay a capture without a terminal and print the final frame."""
    config = _load_config(theme=theme, no_color=no_color or None)
    setup_logging(config.log_file)

    bridge = Bridge(queue_size=config.queue_size, color=not config.no_color)
    dash = new_state(config)
    for msg in (WindowSize(width, height), SessionUpdated(_session(spec, notes, state, context))):
        dash, _ = reduce(dash, msg)

    for line in _read_lines(file):
        bridge.process_line(line)
        for msg in bridge.drain():
            dash, _ = reduce(dash, msg)

    dash, commands = switch_to_tab(dash, tab - 1)
    for command in commands:
        content: FileContent = asyncio.run(load_file(command.path, config.max_file_size))
        dash, _ = reduce(dash, content)

    styles = get_styles(config.theme, config.no_color)
    for row in render_frame(dash, styles):
        typer.echo(row)


def main() -> None:
    """Main CLI entrypoint."""
    app(prog_name=APP_NAME + "-dash")


if __name__ == "__main__":
    main()
