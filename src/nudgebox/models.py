"""Notification items and poll candidates."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

CALENDAR = "calendar"
MEETING = "meeting"
DOCUMENT = "document"
ACTIVITY = "activity"

REMINDER_KINDS = (CALENDAR, MEETING, DOCUMENT)


@dataclass(frozen=True)
class NotificationItem:
    """A notification shown in the inbox and kept in history.

    ``id`` doubles as the dedup key inside its ``category``.
    """

    id: str
    title: str
    message: str
    timestamp: str
    category: str
    navigation_path: str = "/notifications"
    read: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> NotificationItem:
        """Build an item from its persisted form.

        Raises KeyError or TypeError for entries missing required fields.
        """
        return cls(
            id=str(data["id"]),
            title=str(data["title"]),
            message=str(data.get("message") or ""),
            timestamp=str(data["timestamp"]),
            category=str(data["category"]),
            navigation_path=str(data.get("navigationPath") or "/notifications"),
            read=bool(data.get("read", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp,
            "read": self.read,
            "navigationPath": self.navigation_path,
            "category": self.category,
        }

    def as_read(self) -> NotificationItem:
        return self if self.read else replace(self, read=True)


@dataclass(frozen=True)
class Candidate:
    """A normalized record from one of the poll sources.

    The start is given either as ``date`` + ``time_of_day`` or as an ISO
    ``timestamp``. ``reminder_minutes`` is the per-item lead, if any.
    """

    kind: str
    source_id: str
    title: str
    date: str | None = None
    time_of_day: str | None = None
    timestamp: str | None = None
    reminder_minutes: int | None = None
    entry_type: str | None = None
    is_personal: bool = False
    attendees: tuple[str, ...] = ()
    owner: str | None = None
    navigation_path: str = "/notifications"
    metadata: dict[str, Any] = field(default_factory=dict, compare=False)

    def is_relevant_to(self, user_id: str) -> bool:
        """Check whether the user attends or owns this record.

        Records without attendee or owner information are relevant to everyone.
        """
        if not self.attendees and not self.owner:
            return True
        return user_id in self.attendees or user_id == self.owner
