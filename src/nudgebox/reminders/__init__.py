"""Reminder polling: sources, due-window computation and the interval poller."""

from .due import (
    DEFAULT_LEAD_MINUTES,
    DEFAULT_TRAILING_WINDOW_MINUTES,
    SHORT_LEAD_MINUTES,
    compute_due,
    is_due,
    resolve_lead,
    resolve_start,
)
from .poller import ReminderPoller
from .sources import ReminderSource, build_sources, normalize

__all__ = [
    "DEFAULT_LEAD_MINUTES",
    "DEFAULT_TRAILING_WINDOW_MINUTES",
    "SHORT_LEAD_MINUTES",
    "ReminderPoller",
    "ReminderSource",
    "build_sources",
    "compute_due",
    "is_due",
    "normalize",
    "resolve_lead",
    "resolve_start",
]
