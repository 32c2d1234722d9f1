"""nudgebox TUI package."""

from .app import NudgeboxApp
from .utils import format_timestamp, set_terminal_title, styled_cell

__all__ = ["NudgeboxApp", "format_timestamp", "set_terminal_title", "styled_cell"]
