"""
Tests for client/_common.py - NDJSON stream helpers shared by both clients.
"""

import pytest

from client._common import (
    LineBuffer,
    error_message_from_body,
    is_terminal_event,
    iter_ndjson_lines,
    parse_event_line,
)


class TestParseEventLine:

    def test_parses_event(self):
        assert parse_event_line('{"type": "error", "error": "x"}') == {"type": "error", "error": "x"}

    def test_accepts_bytes(self):
        assert parse_event_line(b'{"type":"attempt","data":{}}\n')["type"] == "attempt"

    @pytest.mark.parametrize("line", ["", "   ", "\n"])
    def test_blank_lines_are_ignored(self, line):
        assert parse_event_line(line) is None

    @pytest.mark.parametrize("line", ["not json", "[1, 2]", '{"no_type": true}'])
    def test_malformed_lines_are_skipped(self, line):
        assert parse_event_line(line) is None


class TestIterNdjsonLines:

    def test_reassembles_split_chunks(self):
        chunks = [b'{"type":"att', b'empt"}\n{"type":', b'"success"}\n']
        assert list(iter_ndjson_lines(chunks)) == ['{"type":"attempt"}', '{"type":"success"}']

    def test_trailing_fragment_without_newline(self):
        assert list(iter_ndjson_lines(['{"a":1}\n{"b":2}'])) == ['{"a":1}', '{"b":2}']

    def test_multibyte_character_split_across_chunks(self):
        encoded = '{"text":"Smörgås"}\n'.encode("utf-8")
        split_at = encoded.index(b"\xc3") + 1
        lines = list(iter_ndjson_lines([encoded[:split_at], encoded[split_at:]]))
        assert lines == ['{"text":"Smörgås"}']


class TestLineBuffer:

    def test_feed_returns_complete_lines_only(self):
        buffer = LineBuffer()
        assert buffer.feed("one\ntw") == ["one"]
        assert buffer.feed("o\n") == ["two"]
        assert buffer.flush() is None

    def test_flush_returns_pending(self):
        buffer = LineBuffer()
        buffer.feed("tail")
        assert buffer.flush() == "tail"
        assert buffer.flush() is None


class TestHelpers:

    @pytest.mark.parametrize("event_type,terminal", [
        ("attempt", False), ("success", True), ("warning", True), ("error", True), ("other", False),
    ])
    def test_is_terminal_event(self, event_type, terminal):
        assert is_terminal_event({"type": event_type}) is terminal

    def test_error_message_from_body(self):
        assert error_message_from_body({"error": "Missing required parameters"}, "fallback") == "Missing required parameters"
        assert error_message_from_body({"detail": "x"}, "fallback") == "fallback"
        assert error_message_from_body(None, "fallback") == "fallback"
