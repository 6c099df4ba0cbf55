"""Tests for orbital_tui.terminal"""
from orbital_tui.terminal import ProcessTerminal, Terminal


class RecordingTerminal(Terminal):
    def __init__(self):
        self.writes: list[str] = []

    def start(self, on_input, on_resize) -> None:
        pass

    def stop(self) -> None:
        pass

    def write(self, data: str) -> None:
        self.writes.append(data)

    @property
    def columns(self) -> int:
        return 80

    @property
    def rows(self) -> int:
        return 24


class TestTerminalHelpers:
    def test_move_to_is_one_based(self):
        term = RecordingTerminal()
        term.move_to(2, 4)
        assert term.writes == ["\x1b[3;5H"]

    def test_cursor_visibility(self):
        term = RecordingTerminal()
        term.hide_cursor()
        term.show_cursor()
        assert term.writes == ["\x1b[?25l", "\x1b[?25h"]

    def test_clear_screen_homes_cursor(self):
        term = RecordingTerminal()
        term.clear_screen()
        assert term.writes == ["\x1b[2J\x1b[H"]

    def test_set_title(self):
        term = RecordingTerminal()
        term.set_title("orbital")
        assert term.writes == ["\x1b]0;orbital\x07"]


class TestProcessTerminalSize:
    def test_falls_back_to_environment(self, monkeypatch):
        def no_tty(*args):
            raise OSError("not a tty")

        monkeypatch.setattr("orbital_tui.terminal.os.get_terminal_size", no_tty)
        monkeypatch.setenv("COLUMNS", "132")
        monkeypatch.setenv("LINES", "50")
        term = ProcessTerminal(mouse=False)
        assert term.columns == 132
        assert term.rows == 50
