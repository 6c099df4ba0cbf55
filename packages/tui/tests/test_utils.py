"""Tests for orbital_tui.utils"""
import pytest

from orbital_tui.utils import (
    Cell,
    expand_tabs,
    extract_ansi_code,
    iter_cells,
    pad_to_width,
    strip_ansi,
    truncate_from_start,
    truncate_to_width,
    visible_width,
)


class TestVisibleWidth:
    def test_ascii(self):
        assert visible_width("hello") == 5

    def test_empty(self):
        assert visible_width("") == 0

    def test_ansi_stripped(self):
        assert visible_width("\x1b[31mhello\x1b[0m") == 5

    def test_256_colour_codes(self):
        assert visible_width("\x1b[38;5;214m◆ ORBITAL\x1b[39m") == 9

    def test_unicode_cjk(self):
        # CJK characters are double-width
        assert visible_width("中文") == 4

    def test_emoji(self):
        assert visible_width("👍") == 2

    def test_combining_mark(self):
        assert visible_width("e\u0301") == 1

    def test_tab_counts_four(self):
        assert visible_width("a\tb") == 6

    def test_osc_hyperlink_stripped(self):
        assert visible_width("\x1b]8;;http://x\x07link\x1b]8;;\x07") == 4


class TestStripAnsi:
    def test_plain_unchanged(self):
        assert strip_ansi("plain") == "plain"

    def test_sgr_removed(self):
        assert strip_ansi("\x1b[1;31mred\x1b[0m") == "red"

    def test_osc_removed(self):
        assert strip_ansi("\x1b]0;title\x07text") == "text"


class TestExpandTabs:
    def test_no_tabs(self):
        assert expand_tabs("abc") == "abc"

    def test_tabs(self):
        assert expand_tabs("\tx\t") == "    x    "


class TestExtractAnsiCode:
    def test_csi(self):
        result = extract_ansi_code("\x1b[31mX", 0)
        assert result is not None
        assert result.code == "\x1b[31m"
        assert result.length == 5

    def test_not_escape(self):
        assert extract_ansi_code("abc", 0) is None

    def test_past_end(self):
        assert extract_ansi_code("\x1b[31m", 10) is None

    def test_unterminated_csi(self):
        assert extract_ansi_code("\x1b[31", 0) is None

    def test_osc_with_st(self):
        result = extract_ansi_code("\x1b]0;t\x1b\\rest", 0)
        assert result is not None
        assert result.code == "\x1b]0;t\x1b\\"


class TestIterCells:
    def test_mixed(self):
        assert list(iter_cells("a\x1b[1m中")) == [Cell("a", 1), Cell("\x1b[1m", 0), Cell("中", 2)]

    def test_empty(self):
        assert list(iter_cells("")) == []

    def test_combining_kept_with_base(self):
        assert list(iter_cells("e\u0301x")) == [Cell("e\u0301", 1), Cell("x", 1)]


class TestTruncateToWidth:
    def test_fits(self):
        assert truncate_to_width("hi", 8) == "hi"

    def test_fits_padded(self):
        assert truncate_to_width("hi", 5, pad=True) == "hi   "

    def test_truncates_with_ellipsis(self):
        result = truncate_to_width("hello world", 8)
        assert result == "hello..."
        assert visible_width(result) == 8

    def test_zero_width(self):
        assert truncate_to_width("hello", 0) == ""

    def test_width_smaller_than_ellipsis(self):
        assert truncate_to_width("hello", 2) == ".."

    def test_ansi_preserved_and_reset(self):
        result = truncate_to_width("\x1b[31mhello world\x1b[0m", 8)
        assert result == "\x1b[31mhello\x1b[0m..."
        assert visible_width(result) == 8

    def test_wide_chars_not_split(self):
        result = truncate_to_width("中文字符", 5)
        assert result == "中..."
        assert visible_width(result) == 5

    def test_tabs_expanded(self):
        assert truncate_to_width("\tx", 10) == "    x"

    def test_custom_ellipsis(self):
        assert truncate_to_width("abcdef", 4, ellipsis="…") == "abc…"


class TestTruncateFromStart:
    def test_short_unchanged(self):
        assert truncate_from_start("short", 12) == "short"

    def test_keeps_tail(self):
        result = truncate_from_start("/a/very/long/path/file.txt", 12)
        assert result == ".../file.txt"
        assert visible_width(result) == 12

    def test_tiny_width(self):
        assert truncate_from_start("abcdef", 2) == "..."


class TestPadToWidth:
    def test_pads(self):
        assert pad_to_width("abc", 5) == "abc  "

    def test_truncates_without_ellipsis(self):
        assert pad_to_width("abcdef", 4) == "abcd"

    def test_ansi_truncated_then_reset(self):
        result = pad_to_width("\x1b[1mabcdef\x1b[0m", 4)
        assert result == "\x1b[1mabcd\x1b[0m"
        assert visible_width(result) == 4

    def test_wide_char_boundary_padded(self):
        # a wide char that would straddle the edge is dropped and padded over
        result = pad_to_width("ab中", 3)
        assert result == "ab "

    @pytest.mark.parametrize("width", [0, -1])
    def test_degenerate_width(self, width):
        assert pad_to_width("abc", width) == ""
