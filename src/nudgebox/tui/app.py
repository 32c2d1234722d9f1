"""Main nudgebox TUI application."""

import contextlib
import threading

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Static

from ..config import Config, load_config
from ..dispatcher import Dispatcher
from ..log import get_logger
from .utils import format_timestamp, styled_cell

_log = get_logger("tui")


def _build_bindings(keys: str, action: str, label: str, show: bool = True) -> list[Binding]:
    """Build Binding objects for all keys mapped to an action.

    Args:
        keys: String of characters, each is a key binding
        action: The action name (without 'action_' prefix)
        label: Human-readable label for the action
        show: Whether to show in footer (only first key will be shown)
    """
    if not keys:
        return []

    bindings = [Binding(keys[0], action, label, show=show)]
    for key in keys[1:]:
        bindings.append(Binding(key, action, label, show=False))
    return bindings


class NudgeboxApp(App):
    """Live notification inbox for one user."""

    CSS = """
    #items {
        height: 1fr;
    }

    #status {
        height: 1;
        background: $surface;
        color: $text-muted;
        padding: 0 1;
    }
    """

    def __init__(self, dispatcher: Dispatcher, config: Config | None = None) -> None:
        super().__init__()
        self.config = config or load_config()
        self.dispatcher = dispatcher
        self._ui_thread: int | None = None
        self._ring = False
        self._setup_keybindings()
        if self.config.tui.transparent:
            self.ansi_color = True

    def _setup_keybindings(self) -> None:
        """Build keybindings from config."""
        kb = self.config.tui.keybindings

        for b in _build_bindings(kb.quit, "quit", "Quit"):
            self.bind(b.key, b.action, description=b.description, show=b.show)
        self.bind("escape", "quit", description="Quit", show=False)

        for b in _build_bindings(kb.open, "open", "Open"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.mark_read, "mark_read", "Mark Read"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.mark_all_read, "mark_all_read", "All Read"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        for b in _build_bindings(kb.clear, "clear", "Clear"):
            self.bind(b.key, b.action, description=b.description, show=b.show)

        if len(kb.up_down) == 2:
            up, down = kb.up_down
            self.bind(up, "cursor_up", description="Up", show=False)
            self.bind(down, "cursor_down", description="Down", show=False)

    def compose(self) -> ComposeResult:
        yield Header()
        yield DataTable(id="items")
        yield Static("", id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "nudgebox"
        self.sub_title = self.dispatcher.user_id

        table = self.query_one("#items", DataTable)
        if self.config.tui.transparent:
            self.screen.styles.background = "transparent"
            table.styles.background = "transparent"

        table.cursor_type = "row"
        table.add_column("Time", width=10)
        table.add_column("", width=1)  # Unread indicator
        table.add_column("Category", width=10)
        table.add_column("Title", width=22)
        table.add_column("Message", width=50)

        self._ui_thread = threading.get_ident()
        if self.dispatcher.attention is not None:
            self.dispatcher.attention = self._request_bell
        self.dispatcher.add_listener(self._on_dispatcher_change)
        self.dispatcher.load()
        self.dispatcher.start()

        # Keeps the stream state in the status line current
        self.set_interval(1.0, self._refresh)
        self.refresh_bindings()

    def on_unmount(self) -> None:
        self.dispatcher.stop()

    def _request_bell(self) -> None:
        # Runs under the dispatcher lock; the bell itself rings on the UI thread
        self._ring = True

    def _on_dispatcher_change(self) -> None:
        if threading.get_ident() == self._ui_thread:
            self._refresh()
        else:
            self.call_from_thread(self._refresh)

    def _current_key(self) -> str | None:
        table = self.query_one("#items", DataTable)
        if table.row_count == 0:
            return None
        try:
            row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        except Exception:
            return None
        return row_key.value if row_key else None

    def _refresh(self) -> None:
        if self._ring:
            self._ring = False
            self.bell()

        table = self.query_one("#items", DataTable)
        current_key = self._current_key()
        current_index = table.cursor_coordinate.row

        table.clear()
        items = self.dispatcher.items
        for item in items:
            is_unread = not item.read
            indicator = Text("●", style="bold cyan") if is_unread else Text("")
            table.add_row(
                styled_cell(format_timestamp(item.timestamp), is_unread),
                indicator,
                styled_cell(item.category, is_unread),
                styled_cell(item.title, is_unread),
                styled_cell(item.message, is_unread),
                key=item.id,
            )

        if table.row_count > 0:
            target = None
            if current_key:
                with contextlib.suppress(Exception):
                    target = table.get_row_index(current_key)
            if target is None:
                target = min(current_index, table.row_count - 1)
            table.move_cursor(row=target)

        unread = sum(1 for item in items if not item.read)
        status = f"{unread} unread, {len(items) - unread} read"
        if self.dispatcher.stream is not None:
            status += f"  |  stream: {self.dispatcher.stream.handle.state}"
        self.query_one("#status", Static).update(status)

    def action_cursor_up(self) -> None:
        self.query_one("#items", DataTable).action_cursor_up()

    def action_cursor_down(self) -> None:
        self.query_one("#items", DataTable).action_cursor_down()

    def action_open(self) -> None:
        key = self._current_key()
        if key is not None:
            self.dispatcher.open(key)

    def action_mark_read(self) -> None:
        key = self._current_key()
        if key is not None:
            self.dispatcher.acknowledge(key)

    def action_mark_all_read(self) -> None:
        self.dispatcher.mark_all_read()

    def action_clear(self) -> None:
        self.dispatcher.clear()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Enter on a row opens the item in the web app."""
        if event.row_key is None:
            return
        _log.info("open: %s", event.row_key.value)
        self.dispatcher.open(event.row_key.value)
