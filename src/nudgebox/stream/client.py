"""Long-lived push subscription over server-sent events."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

import httpx

from ..api import auth_headers
from ..errors import StreamConnectionError
from ..log import get_logger
from .sse import iter_messages
from .state import (
    RETRY_CEILING_MS,
    RETRY_FLOOR_MS,
    StreamEvent,
    SubscriptionHandle,
    SubscriptionState,
    transition,
)

_log = get_logger("stream")

MessageCallback = Callable[[dict[str, Any]], None]
TerminateCallback = Callable[[Exception], None]


class EventStreamClient:
    """Reads ``{base_url}/events?userId=...`` on a daemon thread.

    The client only tracks state; it never schedules its own reconnects. When
    the transport fails it moves to BACKOFF and calls ``on_terminate``. Whoever
    owns the timers waits ``handle.retry_delay_ms`` and calls ``reconnect()``.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        retry_floor_ms: int = RETRY_FLOOR_MS,
        retry_ceiling_ms: int = RETRY_CEILING_MS,
        max_attempts: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = f"{base_url.rstrip('/')}/events"
        self.token = token
        self.transport = transport
        self._initial = SubscriptionHandle(
            retry_delay_ms=retry_floor_ms,
            retry_floor_ms=retry_floor_ms,
            retry_ceiling_ms=retry_ceiling_ms,
            max_attempts=max_attempts,
        )
        self.handle = self._initial
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._client: httpx.Client | None = None
        self._user_id = ""
        self._on_message: MessageCallback | None = None
        self._on_terminate: TerminateCallback | None = None

    def _apply(self, event: StreamEvent) -> SubscriptionHandle:
        with self._lock:
            before = self.handle.state
            self.handle = transition(self.handle, event)
            if self.handle.state != before:
                _log.debug("%s: %s -> %s", event, before, self.handle.state)
            return self.handle

    def subscribe(
        self,
        user_id: str,
        on_message: MessageCallback,
        on_terminate: TerminateCallback,
    ) -> Callable[[], None]:
        """Open the channel for ``user_id``. Returns an idempotent unsubscribe."""
        with self._lock:
            if self.handle.closed:
                self.handle = self._initial
            self._stop = threading.Event()
            self._user_id = user_id
            self._on_message = on_message
            self._on_terminate = on_terminate
            stop = self._stop

        if self._apply(StreamEvent.CONNECT).state == SubscriptionState.CONNECTING:
            self._start_reader(stop)
        return self.unsubscribe

    def reconnect(self) -> bool:
        """Leave BACKOFF and open a new connection. False if not in backoff."""
        with self._lock:
            stop = self._stop
        if self.handle.state != SubscriptionState.BACKOFF or stop.is_set():
            return False
        if self._apply(StreamEvent.RETRY).state != SubscriptionState.CONNECTING:
            return False
        _log.info("reconnecting (next delay %dms)", self.handle.retry_delay_ms)
        self._start_reader(stop)
        return True

    def unsubscribe(self) -> None:
        """Close the transport. Safe to call more than once."""
        with self._lock:
            self._stop.set()
            client, self._client = self._client, None
        self._apply(StreamEvent.CLOSE)
        if client is not None:
            try:
                client.close()
            except Exception as e:
                _log.debug("error closing transport: %s", e)

    def _start_reader(self, stop: threading.Event) -> None:
        thread = threading.Thread(target=self._read, args=(stop,), daemon=True)
        thread.start()

    def _read(self, stop: threading.Event) -> None:
        headers = {"Accept": "text/event-stream", **auth_headers(self.token)}
        try:
            with httpx.Client(timeout=None, headers=headers, transport=self.transport) as client:
                with self._lock:
                    if stop.is_set():
                        return
                    self._client = client

                with client.stream("GET", self.url, params={"userId": self._user_id}) as response:
                    if response.status_code >= 400:
                        raise StreamConnectionError(f"HTTP {response.status_code}")
                    if stop.is_set():
                        return
                    self._apply(StreamEvent.OPENED)
                    _log.info("connected to %s as %s", self.url, self._user_id)

                    for message in iter_messages(response.iter_lines()):
                        if stop.is_set():
                            return
                        self._deliver(message)

            raise StreamConnectionError("stream closed by server")
        except Exception as e:
            if stop.is_set():
                return
            handle = self._apply(StreamEvent.FAILED)
            _log.warning(
                "stream failed (%s): %s, failures=%d", handle.state, e, handle.failures
            )
            if self._on_terminate is not None:
                self._on_terminate(e)

    def _deliver(self, message: dict[str, Any]) -> None:
        if self._on_message is None:
            return
        try:
            self._on_message(message)
        except Exception as e:
            _log.error("message handler failed: %s", e, exc_info=True)
