"""Due-reminder computation.

A candidate is due while ``now`` lies in ``[start - lead, start + trailing]``.
Everything here is pure: no store, no clock, no logging side effects beyond
reporting dropped candidates.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime, time, timedelta
from typing import Any

from ..errors import ParseError
from ..log import get_logger
from ..models import CALENDAR, DOCUMENT, MEETING, Candidate, NotificationItem

DEFAULT_LEAD_MINUTES = 15
# Meetings and personal calendar entries ignore any configured lead
SHORT_LEAD_MINUTES = 5
DEFAULT_TRAILING_WINDOW_MINUTES = 60

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")

_TITLES = {
    CALENDAR: "Upcoming event",
    MEETING: "Meeting starting soon",
    DOCUMENT: "New document",
}

_log = get_logger("reminders.due")


def _aware(dt: datetime) -> datetime:
    """Attach the local timezone to naive datetimes."""
    return dt if dt.tzinfo is not None else dt.astimezone()


def parse_iso(value: str) -> datetime:
    """Parse an ISO timestamp (``Z`` suffix allowed) into an aware datetime."""
    try:
        return _aware(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
    except (AttributeError, ValueError) as e:
        raise ParseError(f"bad timestamp {value!r}") from e


def parse_time_of_day(value: Any) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS``. Anything else means midnight."""
    if not isinstance(value, str) or not value:
        return time(0, 0)
    match = _TIME_RE.match(value.strip())
    if not match:
        return time(0, 0)
    hour, minute, second = int(match[1]), int(match[2]), int(match[3] or 0)
    if hour > 23 or minute > 59 or second > 59:
        return time(0, 0)
    return time(hour, minute, second)


def resolve_start(candidate: Candidate) -> datetime:
    """Work out when a candidate starts.

    A date + time-of-day pair wins over an ISO timestamp. Only the date part of
    ``candidate.date`` is used, so full ISO datetimes are accepted there too.
    """
    if candidate.date:
        if not isinstance(candidate.date, str):
            raise ParseError(f"bad date {candidate.date!r}")
        try:
            day = date.fromisoformat(candidate.date.strip()[:10])
        except ValueError as e:
            raise ParseError(f"bad date {candidate.date!r}") from e
        return _aware(datetime.combine(day, parse_time_of_day(candidate.time_of_day)))

    if candidate.timestamp:
        return parse_iso(candidate.timestamp)

    raise ParseError(f"{candidate.kind} {candidate.source_id} has no start")


def resolve_lead(candidate: Candidate, default_minutes: int = DEFAULT_LEAD_MINUTES) -> int:
    """Minutes before the start at which the candidate becomes due."""
    if candidate.kind == MEETING:
        return SHORT_LEAD_MINUTES
    if candidate.kind == CALENDAR and (
        candidate.is_personal or (candidate.entry_type or "").lower() == "personal"
    ):
        return SHORT_LEAD_MINUTES
    if candidate.reminder_minutes is not None and candidate.reminder_minutes >= 0:
        return candidate.reminder_minutes
    return default_minutes


def due_key(candidate: Candidate, lead: int) -> str:
    return f"{candidate.kind}_{candidate.source_id}_{lead}"


def is_due(
    start: datetime,
    lead_minutes: int,
    now: datetime,
    trailing_minutes: int = DEFAULT_TRAILING_WINDOW_MINUTES,
) -> bool:
    now = _aware(now)
    return (
        start - timedelta(minutes=lead_minutes)
        <= now
        <= start + timedelta(minutes=trailing_minutes)
    )


def _describe(candidate: Candidate, start: datetime) -> str:
    if candidate.kind == DOCUMENT:
        return f"{candidate.title} was shared with you"
    local = start.astimezone()
    message = f"{candidate.title} at {local.strftime('%H:%M')} on {local.strftime('%b %d')}"
    link = candidate.metadata.get("link")
    if isinstance(link, str) and link:
        message += f". Join: {link}"
    return message


def compute_due(
    candidates: Iterable[Candidate],
    now: datetime,
    default_window_minutes: int = DEFAULT_LEAD_MINUTES,
    trailing_window_minutes: int = DEFAULT_TRAILING_WINDOW_MINUTES,
) -> list[NotificationItem]:
    """Return a notification for every due candidate, in input order.

    Candidates whose start cannot be resolved are dropped. Duplicate keys
    within the batch are collapsed to the first occurrence.
    """
    now = _aware(now)
    stamp = now.isoformat()
    due: list[NotificationItem] = []
    keys: set[str] = set()

    for candidate in candidates:
        try:
            start = resolve_start(candidate)
        except ParseError as e:
            _log.info("dropped candidate: %s", e)
            continue

        lead = resolve_lead(candidate, default_window_minutes)
        if not is_due(start, lead, now, trailing_window_minutes):
            continue

        key = due_key(candidate, lead)
        if key in keys:
            continue
        keys.add(key)

        due.append(
            NotificationItem(
                id=key,
                title=_TITLES.get(candidate.kind, "Reminder"),
                message=_describe(candidate, start),
                timestamp=stamp,
                category=candidate.kind,
                navigation_path=candidate.navigation_path,
            )
        )

    return due
