"""Tests for orbital_dashboard.render"""
import pytest

from orbital_dashboard.layout import TOO_NARROW_MESSAGE
from orbital_dashboard.messages import (
    FileContent,
    KeyPress,
    OutputLine,
    ProgressInfo,
    ProgressUpdated,
    SessionInfo,
    SessionUpdated,
    TasksUpdated,
    WindowSize,
    WorktreeInfo,
    WorktreeUpdated,
)
from orbital_dashboard.model import new_state, reduce
from orbital_dashboard.render import (
    INITIALIZING_MESSAGE,
    WAITING_MESSAGE,
    format_currency,
    format_fraction,
    format_timer,
    render,
    render_text,
)
from orbital_dashboard.styles import RESET, get_styles, no_styles
from orbital_dashboard.tasks import Task
from orbital_tui.utils import strip_ansi, visible_width

PLAIN = no_styles()


def build(*messages, width=80, height=24):
    state = new_state()
    for msg in (WindowSize(width, height),) + messages:
        state, _ = reduce(state, msg)
    return state


def main_rows(rows):
    # top border, header, divider, tab bar, divider
    return rows[5:]


def assert_grid(rows, width, height):
    assert len(rows) == height
    for row in rows[:-1]:
        assert visible_width(row) == width
    assert visible_width(rows[-1]) <= width


class TestFormatting:
    @pytest.mark.parametrize("amount,text", [
        (0, "$0.00"),
        (1.5, "$1.50"),
        (1234.5, "$1,234.50"),
        (0.005, "$0.01"),
        (-2.5, "-$2.50"),
        (1_000_000, "$1,000,000.00"),
    ])
    def test_currency(self, amount, text):
        assert format_currency(amount) == text

    def test_fraction(self):
        assert format_fraction(3, 50) == "3/50"

    @pytest.mark.parametrize("seconds,text", [(125, "2m 5s"), (59.9, "0m 59s"), (-4, "0m 0s"), (3600, "60m 0s")])
    def test_timer(self, seconds, text):
        assert format_timer(seconds) == text


class TestStates:
    def test_not_ready(self):
        assert render(new_state(), PLAIN) == [INITIALIZING_MESSAGE]

    def test_too_small(self):
        state = build(width=60)
        assert render(state, PLAIN) == [TOO_NARROW_MESSAGE]

    def test_render_text_joins_rows(self):
        state = build()
        assert render_text(state, PLAIN, now=0.0).split("\n") == render(state, PLAIN, now=0.0)


class TestGrid:
    @pytest.mark.parametrize("width,height", [(80, 24), (120, 40), (97, 31)])
    def test_exact_dimensions(self, width, height):
        state = build(OutputLine("hello " * 50), width=width, height=height)
        assert_grid(render(state, PLAIN, now=0.0), width, height)

    def test_colour_rows_keep_width(self):
        tasks = tuple(Task(id=str(i), content="task " * 30) for i in range(8))
        state = build(
            OutputLine("\x1b[31munterminated red " * 10),
            TasksUpdated(tasks),
            SessionUpdated(SessionInfo(spec_files=("/s/a.md", "/s/b.md"), notes_file="/n.md")),
            WorktreeUpdated(WorktreeInfo(path="/wt", branch="main")),
            width=120,
            height=40,
        )
        assert_grid(render(state, get_styles("dark"), now=0.0), 120, 40)

    def test_escape_closed_before_border(self):
        state = build(OutputLine("\x1b[31mred"))
        row = next(r for r in render(state, get_styles("dark"), now=0.0) if "red" in r)
        assert row.index(RESET) > row.index("red")

    def test_borders(self):
        rows = render(build(), PLAIN, now=0.0)
        assert rows[0] == "╔" + "═" * 78 + "╗"
        assert rows[2] == "╠" + "═" * 78 + "╣"
        assert rows[-2] == "╚" + "═" * 78 + "╝"
        assert "q" in rows[-1] and "quit" in rows[-1]


class TestHeaderAndTabs:
    def test_header(self):
        state = build(ProgressUpdated(ProgressInfo(iteration=3, max_iteration=50, cost=1.25, budget=10.0)))
        header = render(state, PLAIN, now=0.0)[1]
        assert "◆ ORBITAL" in header
        assert header.rstrip("║ ").endswith("Iteration 3/50  │  $1.25/$10.00")

    def test_tab_bar(self):
        state = build(SessionUpdated(SessionInfo(spec_files=("/s/spec.md",), notes_file="/n.md")))
        tab_bar = render(state, PLAIN, now=0.0)[3]
        assert tab_bar.startswith("║ 1:Output │ 2:Spec: spec.md │ 3:Notes ")

    def test_tab_bar_overflow(self):
        specs = tuple(f"/s/specification-{i:02d}.md" for i in range(8))
        state = build(SessionUpdated(SessionInfo(spec_files=specs)))
        tab_bar = render(state, PLAIN, now=0.0)[3]
        assert "│ ... " in tab_bar
        assert "specification-02" not in tab_bar


class TestOutputPane:
    def test_waiting_message(self):
        rows = main_rows(render(build(), PLAIN, now=0.0))
        assert rows[4].strip("║ ") == WAITING_MESSAGE
        assert rows[4].startswith("║" + " " * 28 + WAITING_MESSAGE)

    def test_lines_shown_with_padding(self):
        state = build(OutputLine("first"), OutputLine("second"))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0] == "║  first" + " " * 71 + "║"
        assert rows[1].startswith("║  second ")

    def test_tail_shows_newest(self):
        state = build(*(OutputLine(f"line {i}") for i in range(30)))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0].startswith("║  line 20 ")
        assert rows[9].startswith("║  line 29 ")

    def test_scrolled_up(self):
        state = build(*(OutputLine(f"line {i}") for i in range(30)), KeyPress("g"))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0].startswith("║  line 0 ")

    def test_wrapped_continuation(self):
        state = build(OutputLine("- " + "word " * 30))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0].startswith("║  - word")
        assert rows[1].startswith("║    word")


class TestFileView:
    def session(self):
        return SessionUpdated(SessionInfo(notes_file="/work/notes.md"))

    def test_loading(self):
        state = build(self.session(), KeyPress("2"))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0].startswith("║  Loading /work/notes.md...")

    def test_line_numbers(self):
        content = "alpha\r\nbeta\ngamma"
        state = build(self.session(), KeyPress("2"), FileContent("/work/notes.md", content=content))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0] == "║    1│alpha" + " " * 67 + "║"
        assert rows[1].startswith("║    2│beta ")
        assert rows[2].startswith("║    3│gamma ")
        assert rows[3] == "║" + " " * 78 + "║"

    def test_long_lines_truncated(self):
        state = build(self.session(), KeyPress("2"), FileContent("/work/notes.md", content="x" * 100))
        row = main_rows(render(state, PLAIN, now=0.0))[0]
        assert row == "║    1│" + "x" * 69 + "...║"

    def test_scrolled_file(self):
        content = "\n".join(f"row {i}" for i in range(50))
        state = build(self.session(), KeyPress("2"), FileContent("/work/notes.md", content=content), KeyPress("G"))
        rows = main_rows(render(state, PLAIN, now=0.0))
        assert rows[0].startswith("║   41│row 40")
        assert rows[9].startswith("║   50│row 49")


class TestTaskPanel:
    def test_tasks(self):
        tasks = (
            Task(id="1", content="done", status="completed"),
            Task(id="2", content="working", status="in_progress"),
            Task(id="3", content="todo"),
        )
        rows = render(build(TasksUpdated(tasks), width=120, height=40), PLAIN, now=0.0)
        text = "\n".join(rows)
        assert "║  Tasks " in text
        assert "(scroll)" not in text
        assert "║  ● done " in text
        assert "║  → working " in text
        assert "║  ○ todo " in text

    def test_overflow_hint(self):
        tasks = tuple(Task(id=str(i), content=f"task {i}") for i in range(10))
        rows = render(build(TasksUpdated(tasks), width=120, height=40), PLAIN, now=0.0)
        text = "\n".join(rows)
        assert "Tasks (scroll)" in text
        assert "task 5 " in text
        assert "task 6 " not in text


class TestProgressAndSession:
    def test_progress_rows(self):
        progress = ProgressInfo(
            iteration=2, max_iteration=10, step_name="build", step_position=1, step_total=3,
            gate_retries=1, max_retries=3, tokens_in=1500, tokens_out=250, cost=0.5, budget=5.0,
            context_window=200_000,
        )
        text = render_text(build(ProgressUpdated(progress)), PLAIN, now=0.0)
        assert "Iteration 2/10 │ Step: build (1/3) │ Gate retries: 1/3" in text
        assert "Tokens: 1,500 in / 250 out │ Cost: $0.50 / $5.00" in text
        assert "Context: 1,750/200,000 (0%)" in text

    def test_countdown(self):
        progress = ProgressInfo(iteration_start=100.0, iteration_timeout=300.0)
        text = render_text(build(ProgressUpdated(progress)), PLAIN, now=160.0)
        assert "│ 4m 0s" in text

    def test_no_countdown_on_gate_step(self):
        progress = ProgressInfo(iteration_start=100.0, iteration_timeout=300.0, is_gate_step=True)
        text = render_text(build(ProgressUpdated(progress)), PLAIN, now=160.0)
        assert "4m 0s" not in text

    def test_session_rows(self):
        session = SessionInfo(
            spec_files=("/specs/a.md",), notes_file="/n.md", state_file="/s.json", context_file="/c.md",
        )
        text = render_text(
            build(SessionUpdated(session), ProgressUpdated(ProgressInfo(workflow_name="ralph"))),
            PLAIN,
            now=0.0,
        )
        assert "Spec: /specs/a.md │ Workflow: ralph" in text
        assert "Notes: /n.md │ State: /s.json │ Context: /c.md" in text

    def test_spec_summary(self):
        assert "Spec: (none)" in render_text(build(), PLAIN, now=0.0)
        session = SessionInfo(spec_files=("/a.md", "/b.md", "/c.md"))
        assert "Spec: 3 files" in render_text(build(SessionUpdated(session)), PLAIN, now=0.0)

    def test_long_paths_truncated_from_start(self):
        session = SessionInfo(notes_file="/very/long/" + "nested/" * 10 + "notes.md")
        text = render_text(build(SessionUpdated(session)), PLAIN, now=0.0)
        assert "Notes: ..." in text
        assert "nested/notes.md" in text

    def test_worktree_row(self):
        state = build(WorktreeUpdated(WorktreeInfo(path="/wt/feature", branch="feature-x")))
        rows = render(state, PLAIN, now=0.0)
        assert_grid(rows, 80, 24)
        assert rows[-3].startswith("║ ⎇ Worktree: /wt/feature │ Branch: feature-x ")

    def test_strip_ansi_matches_plain(self):
        state = build(OutputLine("plain text"))
        coloured = [strip_ansi(r) for r in render(state, get_styles("light"), now=0.0)]
        plain = render(state, PLAIN, now=0.0)
        # tab padding and text are identical; only escape codes differ
        assert coloured[5] == plain[5]
