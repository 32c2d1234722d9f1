"""Tests for wiring a Dispatcher from configuration."""

from dataclasses import replace
from datetime import datetime, timedelta
from unittest.mock import patch

import httpx

from nudgebox.api import BackendClient
from nudgebox.config import Config, NotifyConfig, PollingConfig
from nudgebox.desktop import ring_bell
from nudgebox.engine import build_dispatcher
from nudgebox.stream import EventStreamClient


def backend(handler) -> BackendClient:
    return BackendClient("http://backend.test/api", transport=httpx.MockTransport(handler))


def test_wires_config_into_components(store, scheduler):
    config = replace(
        Config(),
        polling=PollingConfig(calendar_interval=5, document_interval=60, show_all=True),
    )
    stream = EventStreamClient("http://backend.test/api")
    dispatcher = build_dispatcher(
        config,
        "u1",
        store=store,
        scheduler=scheduler,
        client=backend(lambda r: httpx.Response(200, json=[])),
        stream=stream,
    )

    assert dispatcher.stream is stream
    assert dispatcher.attention is ring_bell
    assert dispatcher.poller.show_all is True
    assert [(s.kind, s.interval) for s in dispatcher.poller.sources] == [
        ("calendar", 5),
        ("meeting", 5),
        ("document", 60),
    ]
    assert dispatcher.dedup.cap == 500
    assert dispatcher.history.cap == 200
    assert dispatcher.projection_cap == 50


def test_bell_can_be_switched_off(store, scheduler):
    config = replace(Config(), notify=NotifyConfig(bell=False))
    dispatcher = build_dispatcher(
        config,
        "u1",
        store=store,
        scheduler=scheduler,
        client=backend(lambda r: httpx.Response(200, json=[])),
        stream=EventStreamClient("http://backend.test/api"),
    )
    assert dispatcher.attention is None


def test_poll_cycle_reaches_projection(store, scheduler):
    soon = (datetime.now().astimezone() + timedelta(minutes=2)).isoformat()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/meetings/user"):
            return httpx.Response(200, json=[{"_id": "m1", "title": "Sync", "startTime": soon}])
        return httpx.Response(200, json=[])

    dispatcher = build_dispatcher(
        Config(),
        "u1",
        store=store,
        scheduler=scheduler,
        attention=lambda: None,
        client=backend(handler),
        stream=EventStreamClient("http://backend.test/api"),
    )
    dispatcher.notifier.enabled = False

    dispatcher.poller.start()
    scheduler.advance(0)

    assert [i.id for i in dispatcher.items] == ["meeting_m1_5"]
    assert dispatcher.history.load("u1")[0].id == "meeting_m1_5"

    scheduler.advance(10)
    assert len(dispatcher.items) == 1


# --- teardown ---


def test_stop_closes_client_it_created(store, scheduler):
    with patch("nudgebox.engine.BackendClient") as client_cls:
        dispatcher = build_dispatcher(
            Config(),
            "u1",
            store=store,
            scheduler=scheduler,
            stream=EventStreamClient("http://backend.test/api"),
        )

    dispatcher.stop()
    dispatcher.stop()

    client_cls.return_value.close.assert_called_once_with()


def test_stop_leaves_passed_in_client_open(store, scheduler):
    client = backend(lambda r: httpx.Response(200, json=[]))
    dispatcher = build_dispatcher(
        Config(),
        "u1",
        store=store,
        scheduler=scheduler,
        client=client,
        stream=EventStreamClient("http://backend.test/api"),
    )

    dispatcher.stop()

    assert not client.client.is_closed
    client.close()
