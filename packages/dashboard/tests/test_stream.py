"""Tests for orbital_dashboard.stream"""
import json
import logging

import pytest

from orbital_dashboard.stream import Stats, StreamParser


def line(**obj) -> str:
    return json.dumps(obj)


class TestParseLine:
    @pytest.mark.parametrize("raw", ["", "   ", "not json", "[1, 2]", '"text"', '{"type": 5}'])
    def test_ignored(self, raw):
        assert StreamParser().parse_line(raw) is None

    def test_bytes(self):
        event = StreamParser().parse_line(b'{"type": "system", "message": "hello"}\n')
        assert event.type == "system"
        assert event.content == "hello"

    def test_assistant_text(self):
        event = StreamParser().parse_line(line(
            type="assistant",
            message={"content": [{"type": "text", "text": "Hello "}, {"type": "text", "text": "there"}]},
        ))
        assert event.content == "Hello there"
        assert event.tool_name == ""

    def test_assistant_tool_use(self):
        event = StreamParser().parse_line(line(
            type="assistant",
            message={"content": [{"type": "tool_use", "id": "t1", "name": "Read", "input": {"file_path": "/x"}}]},
        ))
        assert event.tool_name == "Read"
        assert event.tool_id == "t1"
        assert event.tool_input == '{"file_path":"/x"}'

    def test_user_filenames(self):
        parser = StreamParser()
        one = parser.parse_line(line(type="user", tool_use_result={"filenames": ["a.py"]}))
        two = parser.parse_line(line(type="user", tool_use_result={"filenames": ["a.py", "b.py"]}))
        assert one.content == "a.py"
        assert two.content == "2 files"

    def test_user_tool_result_truncated(self):
        event = StreamParser().parse_line(line(
            type="user",
            message={"content": [{"type": "tool_result", "tool_use_id": "t1", "content": "x" * 150}]},
        ))
        assert event.tool_id == "t1"
        assert event.content == "x" * 100 + "..."

    def test_block_events(self):
        parser = StreamParser()
        start = parser.parse_line(line(
            type="content_block_start",
            content_block={"type": "tool_use", "id": "t2", "name": "Bash", "input": {}},
        ))
        assert start.content == "tool_use"
        assert start.tool_name == "Bash"
        delta = parser.parse_line(line(type="content_block_delta", delta={"text": "abc"}))
        assert delta.content == "abc"
        stop = parser.parse_line(line(type="content_block_stop"))
        assert stop.type == "content_block_stop"

    def test_error(self):
        event = StreamParser().parse_line(line(type="error", error={"message": "boom"}))
        assert event.content == "boom"

    def test_wrong_field_types_tolerated(self):
        event = StreamParser().parse_line(line(type="assistant", message={"content": "oops", "usage": []}))
        assert event.content == ""


class TestStats:
    def test_assistant_usage_is_provisional(self):
        parser = StreamParser()
        parser.parse_line(line(
            type="assistant",
            message={"content": [], "usage": {"input_tokens": 10, "cache_read_input_tokens": 5, "output_tokens": 3}},
        ))
        assert parser.stats() == Stats(tokens_in=15, tokens_out=3)
        parser.parse_line(line(
            type="assistant",
            message={"content": [], "usage": {"input_tokens": 20, "output_tokens": 7}},
        ))
        assert parser.stats() == Stats(tokens_in=20, tokens_out=7)

    def test_result_accumulates(self):
        parser = StreamParser()
        parser.parse_line(line(type="assistant", message={"usage": {"input_tokens": 50, "output_tokens": 5}}))
        for _ in range(2):
            parser.parse_line(line(
                type="result",
                subtype="success",
                total_cost_usd=0.25,
                duration_ms=1000,
                usage={"input_tokens": 100, "output_tokens": 20},
            ))
        assert parser.stats() == Stats(tokens_in=200, tokens_out=40, cost_usd=0.5, duration_ms=2000)

    def test_result_subtype(self):
        event = StreamParser().parse_line(line(type="result", subtype="success"))
        assert event.content == "success"


class TestEventCounting:
    def test_unknown_type_warns_once(self, caplog):
        parser = StreamParser()
        with caplog.at_level(logging.WARNING, logger="orbital_dashboard.stream"):
            parser.parse_line(line(type="mystery"))
            parser.parse_line(line(type="mystery"))
        assert parser.unknown_events == {"mystery": 2}
        assert len([r for r in caplog.records if "mystery" in r.getMessage()]) == 1

    def test_known_counted(self):
        parser = StreamParser()
        parser.parse_line(line(type="system"))
        parser.parse_line(line(type="result"))
        assert parser.known_events == 2
        assert parser.unknown_events == {}
