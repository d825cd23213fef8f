"""Tests for SSE line decoding."""

from __future__ import annotations

from pingai.adapters.base import iter_sse_events


def test_data_lines_yield_immediately() -> None:
    lines = ['data: {"a": 1}', 'data: {"b": 2}', ""]
    assert list(iter_sse_events(lines)) == [("", '{"a": 1}'), ("", '{"b": 2}')]


def test_event_names_reset_on_blank_line() -> None:
    lines = [
        "event: message_start",
        'data: {"type": "message_start"}',
        "",
        'data: {"x": 1}',
        "",
    ]
    assert list(iter_sse_events(lines)) == [
        ("message_start", '{"type": "message_start"}'),
        ("", '{"x": 1}'),
    ]


def test_comments_and_other_fields_ignored() -> None:
    lines = [": keep-alive", "id: 7", "retry: 1000", "data: [DONE]"]
    assert list(iter_sse_events(lines)) == [("", "[DONE]")]


def test_carriage_returns_stripped() -> None:
    assert list(iter_sse_events(["event: ping\r", "data: {}\r", "\r"])) == [("ping", "{}")]


def test_data_without_space() -> None:
    assert list(iter_sse_events(["data:[DONE]"])) == [("", "[DONE]")]
