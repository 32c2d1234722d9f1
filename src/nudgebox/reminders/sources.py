"""Poll sources and normalization of their records into candidates."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..errors import ParseError
from ..log import get_logger
from ..models import CALENDAR, DOCUMENT, MEETING, Candidate

if TYPE_CHECKING:
    from ..api import BackendClient

CALENDAR_INTERVAL = 10.0
DOCUMENT_INTERVAL = 30.0

_NAVIGATION = {
    CALENDAR: "/calendar",
    MEETING: "/meetings",
    DOCUMENT: "/documents",
}

_log = get_logger("reminders.sources")


@dataclass
class ReminderSource:
    """One backend collection that can produce reminders.

    ``fetch`` returns normalized candidates and may raise SourceFetchError.
    ``reminder_minutes`` is the lead used when a candidate has none of its own.
    """

    kind: str
    fetch: Callable[[], list[Candidate]]
    reminder_minutes: int = 15
    interval: float = CALENDAR_INTERVAL


def _ident(value: Any) -> str | None:
    """Pull an id out of a populated reference ({"_id": ...}) or a bare id."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    return str(value) if value else None


def _ident_list(values: Any) -> tuple[str, ...]:
    if not isinstance(values, list):
        return ()
    return tuple(i for i in (_ident(v) for v in values) if i)


def _text(value: Any) -> str | None:
    """Strings pass through; numbers, objects and blanks become None."""
    if isinstance(value, str) and value.strip():
        return value
    return None


def _minutes(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _record_id(kind: str, record: dict[str, Any]) -> str:
    record_id = _ident(record.get("_id") or record.get("id"))
    if not record_id:
        raise ParseError(f"{kind} record without id")
    return record_id


def calendar_candidate(record: dict[str, Any]) -> Candidate | None:
    """Normalize a calendar event. Returns None when its reminder is switched off."""
    if record.get("reminder") is False:
        return None
    return Candidate(
        kind=CALENDAR,
        source_id=_record_id(CALENDAR, record),
        title=str(record.get("title") or "Event"),
        date=_text(record.get("eventDate")),
        time_of_day=_text(record.get("startTime")),
        reminder_minutes=_minutes(record.get("reminderTime")),
        entry_type=record.get("eventType"),
        is_personal=bool(record.get("isPersonal", False)),
        attendees=_ident_list(record.get("attendees")),
        owner=_ident(record.get("createdBy")),
        navigation_path=_NAVIGATION[CALENDAR],
    )


def meeting_candidate(record: dict[str, Any]) -> Candidate:
    return Candidate(
        kind=MEETING,
        source_id=_record_id(MEETING, record),
        title=str(record.get("title") or "Meeting"),
        timestamp=_text(record.get("startTime")),
        attendees=_ident_list(record.get("participants")),
        owner=_ident(record.get("createdBy")),
        navigation_path=_NAVIGATION[MEETING],
        metadata={"link": record.get("meetingLink")} if record.get("meetingLink") else {},
    )


def document_candidate(record: dict[str, Any]) -> Candidate:
    """Normalize an uploaded document. Its upload time stands in for a start."""
    return Candidate(
        kind=DOCUMENT,
        source_id=_record_id(DOCUMENT, record),
        title=str(
            record.get("title") or record.get("fileName") or record.get("name") or "Document"
        ),
        timestamp=_text(record.get("uploadedAt")) or _text(record.get("createdAt")),
        navigation_path=_NAVIGATION[DOCUMENT],
    )


_NORMALIZERS: dict[str, Callable[[dict[str, Any]], Candidate | None]] = {
    CALENDAR: calendar_candidate,
    MEETING: meeting_candidate,
    DOCUMENT: document_candidate,
}


def normalize(kind: str, records: Iterable[Any]) -> list[Candidate]:
    """Normalize raw records, dropping the ones that don't parse."""
    normalizer = _NORMALIZERS[kind]
    candidates = []
    for record in records:
        if not isinstance(record, dict):
            _log.info("dropped %s record: not an object", kind)
            continue
        try:
            candidate = normalizer(record)
        except ParseError as e:
            _log.info("dropped %s record: %s", kind, e)
            continue
        if candidate is not None:
            candidates.append(candidate)
    return candidates


def build_sources(
    client: BackendClient,
    default_lead_minutes: int = 15,
    calendar_interval: float = CALENDAR_INTERVAL,
    document_interval: float = DOCUMENT_INTERVAL,
) -> list[ReminderSource]:
    """The three poll sources backed by the REST API."""
    return [
        ReminderSource(
            kind=CALENDAR,
            fetch=lambda: normalize(CALENDAR, client.get_all_events()),
            reminder_minutes=default_lead_minutes,
            interval=calendar_interval,
        ),
        ReminderSource(
            kind=MEETING,
            fetch=lambda: normalize(MEETING, client.get_user_meetings()),
            reminder_minutes=default_lead_minutes,
            interval=calendar_interval,
        ),
        ReminderSource(
            kind=DOCUMENT,
            fetch=lambda: normalize(DOCUMENT, client.get_documents_for_user()),
            reminder_minutes=default_lead_minutes,
            interval=document_interval,
        ),
    ]
