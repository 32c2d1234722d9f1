"""Turning push messages into notification items.

Message types are opaque dot-separated strings like ``ticket.comment_added``.
Only the namespace (the part before the first dot) picks the category, the
label and where a click should take the user.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from ..models import ACTIVITY, NotificationItem

# namespace -> (category, label, navigation path)
_ROUTES: dict[str, tuple[str, str, str]] = {
    "calendar": ("calendar", "Calendar", "/calendar"),
    "meeting": ("meeting", "Meeting", "/meetings"),
    "standup": ("standup", "Standup", "/standups"),
    "ticket": ("ticket", "Ticket", "/tickets"),
    "bug": ("bug", "Bug", "/bugs"),
    "kanban": ("kanban", "Board", "/kanban"),
}
_FALLBACK = (ACTIVITY, "Activity", "/notifications")

# Server-side bookkeeping messages, not user-facing events
_IGNORED_TYPES = {"connected", "heartbeat"}


def route(message_type: str) -> tuple[str, str, str]:
    namespace = message_type.split(".", 1)[0]
    return _ROUTES.get(namespace, _FALLBACK)


def _field(data: dict[str, Any], *names: str) -> str | None:
    for name in names:
        value = data.get(name)
        if isinstance(value, dict):
            value = value.get("_id") or value.get("id")
        if value:
            return str(value)
    return None


def classify(message: dict[str, Any], now: datetime | None = None) -> NotificationItem | None:
    """Build a notification for a push message, or None if it isn't one."""
    message_type = message.get("type")
    if not isinstance(message_type, str) or message_type in _IGNORED_TYPES:
        return None
    if "." not in message_type:
        return None

    data = message.get("data")
    if not isinstance(data, dict):
        data = {}

    category, label, path = route(message_type)
    verb = message_type.split(".", 1)[1].replace(".", " ").replace("_", " ")

    item_id = f"{category}_{message_type}"
    source_id = _field(data, "_id", "id", "bug", "ticket")
    if source_id:
        item_id += f"_{source_id}"
    sub = _field(data, "ticketId")
    if sub:
        item_id += f"_{sub}"

    subject = data.get("title") or data.get("name")
    text = f"{subject}: {verb}" if subject else f"{label} {verb}"
    stamp = (now or datetime.now().astimezone()).isoformat()

    return NotificationItem(
        id=item_id,
        title=f"{label} update",
        message=text,
        timestamp=stamp,
        category=category,
        navigation_path=path,
    )
