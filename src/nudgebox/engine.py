"""Wiring: build a ready-to-start Dispatcher from configuration."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .api import BackendClient
from .config import Config
from .dedup import Deduplicator
from .desktop import DesktopNotifier, ring_bell
from .dispatcher import Dispatcher
from .handlers import open_item
from .history import NotificationHistoryStore
from .models import NotificationItem
from .reminders import ReminderPoller, build_sources
from .store import KeyValueStore, SqliteStore
from .stream import EventStreamClient
from .timers import Scheduler, ThreadScheduler


def build_dispatcher(
    config: Config,
    user_id: str,
    store: KeyValueStore | None = None,
    scheduler: Scheduler | None = None,
    attention: Callable[[], None] | None = None,
    on_open: Callable[[NotificationItem], Any] | None = None,
    client: BackendClient | None = None,
    stream: EventStreamClient | None = None,
) -> Dispatcher:
    """Assemble store, dedup, history, poller, stream client and notifier.

    Anything passed in is used as is; the rest comes from ``config``.
    """
    store = store if store is not None else SqliteStore()
    scheduler = scheduler if scheduler is not None else ThreadScheduler()

    if attention is None and config.notify.bell:
        attention = ring_bell
    if on_open is None:
        app_url = config.server.app_url

        def on_open(item: NotificationItem) -> bool:
            return open_item(app_url, item)

    owns_client = client is None
    if client is None:
        client = BackendClient(config.server.base_url, config.server.token)
    if stream is None:
        stream = EventStreamClient(
            config.server.base_url,
            config.server.token,
            retry_floor_ms=config.stream.retry_floor_ms,
            retry_ceiling_ms=config.stream.retry_ceiling_ms,
            max_attempts=config.stream.max_attempts,
        )

    dedup = Deduplicator(store, user_id, cap=config.history.seen_cap)
    dispatcher = Dispatcher(
        user_id,
        NotificationHistoryStore(store, cap=config.history.history_cap),
        dedup,
        scheduler,
        notifier=DesktopNotifier(enabled=config.notify.desktop),
        attention=attention,
        on_open=on_open,
        stream=stream,
        projection_cap=config.history.projection_cap,
    )
    dispatcher.poller = ReminderPoller(
        build_sources(
            client,
            default_lead_minutes=config.polling.default_lead_minutes,
            calendar_interval=config.polling.calendar_interval,
            document_interval=config.polling.document_interval,
        ),
        dedup,
        dispatcher.ingest,
        scheduler,
        user_id,
        show_all=config.polling.show_all,
        trailing_window_minutes=config.polling.trailing_window_minutes,
    )
    if owns_client:
        dispatcher.add_cleanup(client.close)
    return dispatcher
