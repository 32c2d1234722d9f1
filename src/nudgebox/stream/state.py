"""Subscription state machine for the push channel.

    DISCONNECTED --connect--> CONNECTING --opened--> CONNECTED
    CONNECTING|CONNECTED --failed--> BACKOFF --retry--> CONNECTING
    any --close--> DISCONNECTED (terminal)

``retry_delay_ms`` is the wait before the next reconnect. It doubles each time
a backoff ends (capped at the ceiling) and drops back to the floor once a
connection opens, so successive failures wait 2s, 4s, 8s, 16s, 30s, 30s...
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import StrEnum

RETRY_FLOOR_MS = 2000
RETRY_CEILING_MS = 30000


class SubscriptionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKOFF = "backoff"


class StreamEvent(StrEnum):
    CONNECT = "connect"
    OPENED = "opened"
    FAILED = "failed"
    RETRY = "retry"
    CLOSE = "close"


@dataclass(frozen=True)
class SubscriptionHandle:
    state: SubscriptionState = SubscriptionState.DISCONNECTED
    retry_delay_ms: int = RETRY_FLOOR_MS
    retry_floor_ms: int = RETRY_FLOOR_MS
    retry_ceiling_ms: int = RETRY_CEILING_MS
    failures: int = 0
    max_attempts: int | None = None
    closed: bool = False

    @property
    def exhausted(self) -> bool:
        return self.max_attempts is not None and self.failures >= self.max_attempts


def transition(handle: SubscriptionHandle, event: StreamEvent) -> SubscriptionHandle:
    """Apply an event. Events that don't fit the current state change nothing."""
    if handle.closed:
        return handle

    state = handle.state

    if event == StreamEvent.CLOSE:
        return replace(handle, state=SubscriptionState.DISCONNECTED, closed=True)

    if event == StreamEvent.CONNECT and state == SubscriptionState.DISCONNECTED:
        return replace(handle, state=SubscriptionState.CONNECTING)

    if event == StreamEvent.OPENED and state == SubscriptionState.CONNECTING:
        return replace(
            handle,
            state=SubscriptionState.CONNECTED,
            retry_delay_ms=handle.retry_floor_ms,
            failures=0,
        )

    if event == StreamEvent.FAILED and state in (
        SubscriptionState.CONNECTING,
        SubscriptionState.CONNECTED,
    ):
        failed = replace(handle, state=SubscriptionState.BACKOFF, failures=handle.failures + 1)
        if failed.exhausted:
            return replace(failed, state=SubscriptionState.DISCONNECTED)
        return failed

    if event == StreamEvent.RETRY and state == SubscriptionState.BACKOFF:
        return replace(
            handle,
            state=SubscriptionState.CONNECTING,
            retry_delay_ms=min(handle.retry_delay_ms * 2, handle.retry_ceiling_ms),
        )

    return handle
