"""Tests for server-sent events framing."""

import pytest

from nudgebox.errors import ParseError
from nudgebox.stream.sse import iter_frames, iter_messages, parse_payload


def test_frames_split_on_blank_lines():
    lines = ['data: {"type": "a.x"}', "", 'data: {"type": "b.y"}', ""]
    assert list(iter_frames(lines)) == ['{"type": "a.x"}', '{"type": "b.y"}']


def test_comments_are_skipped():
    lines = [":heartbeat", "", ": keepalive", 'data: {"type": "a.x"}', ""]
    assert list(iter_frames(lines)) == ['{"type": "a.x"}']


def test_multiline_data_is_joined():
    lines = ["data: {", 'data: "type": "a.x"}', ""]
    assert list(iter_frames(lines)) == ['{\n"type": "a.x"}']


def test_other_fields_ignored():
    lines = ["event: update", "id: 7", "retry: 1000", "data:{}", ""]
    assert list(iter_frames(lines)) == ["{}"]


def test_trailing_partial_frame_is_discarded():
    assert list(iter_frames(['data: {"type": "a.x"}'])) == []


def test_carriage_returns_stripped():
    assert list(iter_frames(['data: {"type": "a.x"}\r', "\r"])) == ['{"type": "a.x"}']


def test_parse_payload():
    assert parse_payload('{"type": "ticket.created", "data": {"_id": 1}}') == {
        "type": "ticket.created",
        "data": {"_id": 1},
    }
    with pytest.raises(ParseError):
        parse_payload("not json")
    with pytest.raises(ParseError):
        parse_payload('{"data": {}}')
    with pytest.raises(ParseError):
        parse_payload("[1, 2]")


def test_bad_frames_do_not_stop_the_stream():
    lines = [
        "data: nope",
        "",
        'data: {"type": "connected", "channel": "u1"}',
        "",
        'data: {"type": "meeting.created", "data": {}}',
        "",
    ]
    assert [m["type"] for m in iter_messages(lines)] == ["connected", "meeting.created"]
