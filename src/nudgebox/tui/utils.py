"""TUI utilities and helpers."""

import sys
from datetime import datetime

from rich.text import Text

from ..errors import ParseError
from ..reminders.due import parse_iso

_DAY_SECONDS = 86400


def set_terminal_title(title: str) -> None:
    """Set the terminal/pane title via OSC escape sequence."""
    sys.stdout.write(f"\033]0;{title}\007")
    sys.stdout.flush()


def styled_cell(value: str, is_unread: bool) -> Text:
    """Style a cell value based on read/unread status."""
    if is_unread:
        return Text(value, style="bold cyan")

    return Text(value, style="dim")


def format_timestamp(value: str, now: datetime | None = None) -> str:
    """Clock time for today's items, the date for anything older.

    Unparseable timestamps are shown as they are.
    """
    try:
        dt = parse_iso(value).astimezone()
    except ParseError:
        return value
    now = now or datetime.now().astimezone()
    if (now - dt).total_seconds() < _DAY_SECONDS:
        return dt.strftime("%H:%M:%S")
    return dt.strftime("%Y-%m-%d")
