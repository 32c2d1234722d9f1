"""Tests for the push channel client, using httpx.MockTransport."""

import threading

import httpx

from nudgebox.errors import StreamConnectionError
from nudgebox.stream import EventStreamClient, SubscriptionState

WAIT = 5


def sse_body(*payloads: str) -> bytes:
    return b"".join(f"data: {p}\n\n".encode() for p in payloads)


def test_delivers_messages_then_reports_clean_close():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        body = b":heartbeat\n\n" + sse_body(
            '{"type": "connected", "channel": "u1"}',
            "not json",
            '{"type": "ticket.created", "data": {"_id": "t1"}}',
        )
        return httpx.Response(200, content=body)

    messages = []
    errors = []
    done = threading.Event()

    def on_terminate(error):
        errors.append(error)
        done.set()

    client = EventStreamClient(
        "http://backend.test/api", token="tok", transport=httpx.MockTransport(handler)
    )
    client.subscribe("u1", messages.append, on_terminate)

    assert done.wait(WAIT)
    assert [m["type"] for m in messages] == ["connected", "ticket.created"]
    assert isinstance(errors[0], StreamConnectionError)
    assert client.handle.state == SubscriptionState.BACKOFF
    assert client.handle.failures == 1

    request = requests[0]
    assert request.url.path == "/api/events"
    assert request.url.params["userId"] == "u1"
    assert request.headers["accept"] == "text/event-stream"
    assert request.headers["authorization"] == "Bearer tok"


def test_http_error_is_a_transport_failure():
    done = threading.Event()
    errors = []

    def on_terminate(error):
        errors.append(error)
        done.set()

    client = EventStreamClient(
        "http://backend.test/api", transport=httpx.MockTransport(lambda r: httpx.Response(500))
    )
    client.subscribe("u1", lambda m: None, on_terminate)

    assert done.wait(WAIT)
    assert "500" in str(errors[0])
    assert client.handle.retry_delay_ms == 2000


def test_reconnect_doubles_delay():
    terminated = threading.Semaphore(0)
    client = EventStreamClient(
        "http://backend.test/api", transport=httpx.MockTransport(lambda r: httpx.Response(502))
    )
    client.subscribe("u1", lambda m: None, lambda e: terminated.release())
    assert terminated.acquire(timeout=WAIT)

    assert client.reconnect()
    assert terminated.acquire(timeout=WAIT)
    assert client.handle.retry_delay_ms == 4000
    assert client.handle.failures == 2


def test_reconnect_outside_backoff_is_refused():
    client = EventStreamClient("http://backend.test/api")
    assert client.reconnect() is False


def test_handler_errors_do_not_kill_the_stream():
    done = threading.Event()
    received = []

    def on_message(message):
        received.append(message["type"])
        raise RuntimeError("boom")

    client = EventStreamClient(
        "http://backend.test/api",
        transport=httpx.MockTransport(
            lambda r: httpx.Response(200, content=sse_body('{"type": "a.x"}', '{"type": "b.y"}'))
        ),
    )
    client.subscribe("u1", on_message, lambda e: done.set())

    assert done.wait(WAIT)
    assert received == ["a.x", "b.y"]


def test_unsubscribe_is_idempotent_and_terminal():
    client = EventStreamClient("http://backend.test/api")
    client.unsubscribe()
    client.unsubscribe()
    assert client.handle.closed
    assert client.handle.state == SubscriptionState.DISCONNECTED
    assert client.reconnect() is False


def test_no_terminate_after_unsubscribe():
    release = threading.Event()
    errors = []

    def handler(request):
        release.wait(WAIT)
        return httpx.Response(500)

    client = EventStreamClient("http://backend.test/api", transport=httpx.MockTransport(handler))
    client.subscribe("u1", lambda m: None, errors.append)
    client.unsubscribe()
    release.set()

    # Give the reader a moment to observe the failure
    threading.Event().wait(0.2)
    assert errors == []
    assert client.handle.closed
