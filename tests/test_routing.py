"""Tests for push message classification."""

from datetime import UTC, datetime

import pytest

from nudgebox.stream import classify
from nudgebox.stream.routing import route

NOW = datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "message_type, category, path",
    [
        ("calendar.event_created", "calendar", "/calendar"),
        ("meeting.updated", "meeting", "/meetings"),
        ("standup.submitted", "standup", "/standups"),
        ("ticket.comment_added", "ticket", "/tickets"),
        ("bug.assigned", "bug", "/bugs"),
        ("kanban.card_moved", "kanban", "/kanban"),
        ("payroll.processed", "activity", "/notifications"),
    ],
)
def test_route(message_type, category, path):
    assert route(message_type)[0] == category
    assert route(message_type)[2] == path


def test_classify_ticket_comment():
    item = classify(
        {
            "type": "ticket.comment_added",
            "data": {"_id": "c9", "ticketId": "t1", "title": "Login broken"},
        },
        now=NOW,
    )
    assert item.id == "ticket_ticket.comment_added_c9_t1"
    assert item.category == "ticket"
    assert item.title == "Ticket update"
    assert item.message == "Login broken: comment added"
    assert item.navigation_path == "/tickets"
    assert item.timestamp == NOW.isoformat()
    assert not item.read


def test_classify_populated_reference():
    item = classify({"type": "bug.assigned", "data": {"bug": {"_id": "b7"}}}, now=NOW)
    assert item.id == "bug_bug.assigned_b7"
    assert item.message == "Bug assigned"


def test_same_message_gives_same_id():
    message = {"type": "meeting.updated", "data": {"_id": "m1"}}
    assert classify(message, now=NOW).id == classify(message).id


@pytest.mark.parametrize(
    "message",
    [
        {"type": "connected", "channel": "u1"},
        {"type": "heartbeat"},
        {"type": "nodot"},
        {"data": {}},
        {"type": 5},
    ],
)
def test_non_notifications(message):
    assert classify(message) is None


def test_missing_data_still_classifies():
    item = classify({"type": "standup.reminder"}, now=NOW)
    assert item.id == "standup_standup.reminder"
    assert item.message == "Standup reminder"
