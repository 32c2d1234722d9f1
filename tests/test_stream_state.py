"""Tests for the subscription state machine."""

from nudgebox.stream import StreamEvent, SubscriptionHandle, SubscriptionState, transition

S = SubscriptionState
E = StreamEvent


def run(handle: SubscriptionHandle, *events: StreamEvent) -> SubscriptionHandle:
    for event in events:
        handle = transition(handle, event)
    return handle


def test_happy_path():
    handle = run(SubscriptionHandle(), E.CONNECT)
    assert handle.state == S.CONNECTING
    handle = transition(handle, E.OPENED)
    assert handle.state == S.CONNECTED
    assert handle.retry_delay_ms == 2000


def test_backoff_sequence_caps_at_ceiling():
    handle = run(SubscriptionHandle(), E.CONNECT, E.OPENED)
    delays = []
    for _ in range(6):
        handle = transition(handle, E.FAILED)
        assert handle.state == S.BACKOFF
        delays.append(handle.retry_delay_ms)
        handle = transition(handle, E.RETRY)
        assert handle.state == S.CONNECTING

    assert delays == [2000, 4000, 8000, 16000, 30000, 30000]
    assert handle.failures == 6


def test_delay_never_decreases_between_failures():
    handle = run(SubscriptionHandle(), E.CONNECT)
    previous = handle.retry_delay_ms
    for _ in range(10):
        handle = run(handle, E.FAILED, E.RETRY)
        assert handle.retry_delay_ms >= previous
        previous = handle.retry_delay_ms


def test_success_resets_delay():
    handle = run(SubscriptionHandle(), E.CONNECT, E.FAILED, E.RETRY, E.FAILED, E.RETRY)
    assert handle.retry_delay_ms == 8000
    handle = transition(handle, E.OPENED)
    assert handle.retry_delay_ms == 2000
    assert handle.failures == 0


def test_close_is_terminal():
    for events in [(), (E.CONNECT,), (E.CONNECT, E.OPENED), (E.CONNECT, E.FAILED)]:
        handle = run(SubscriptionHandle(), *events, E.CLOSE)
        assert handle.state == S.DISCONNECTED
        assert handle.closed
        assert run(handle, E.CONNECT, E.OPENED, E.RETRY) == handle


def test_invalid_events_are_ignored():
    handle = SubscriptionHandle()
    assert transition(handle, E.OPENED) == handle
    assert transition(handle, E.RETRY) == handle
    assert transition(handle, E.FAILED) == handle

    connected = run(handle, E.CONNECT, E.OPENED)
    assert transition(connected, E.CONNECT) == connected


def test_max_attempts_gives_up():
    handle = run(SubscriptionHandle(max_attempts=2), E.CONNECT, E.FAILED, E.RETRY)
    assert handle.state == S.CONNECTING
    handle = transition(handle, E.FAILED)
    assert handle.state == S.DISCONNECTED
    assert handle.exhausted
    assert not handle.closed


def test_custom_floor_and_ceiling():
    handle = SubscriptionHandle(retry_delay_ms=100, retry_floor_ms=100, retry_ceiling_ms=300)
    handle = run(handle, E.CONNECT, E.FAILED, E.RETRY, E.FAILED, E.RETRY, E.FAILED)
    assert handle.retry_delay_ms == 300
