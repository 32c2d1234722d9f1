"""Server-sent events framing.

Frames are ``data:`` lines ended by a blank line. Lines starting with ``:`` are
comments (the server's heartbeat). Other fields (event, id, retry) are ignored.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from typing import Any

from ..errors import ParseError
from ..log import get_logger

_log = get_logger("stream.sse")


def parse_payload(data: str) -> dict[str, Any]:
    """Decode one frame's data into a ``{type, data}`` message."""
    try:
        message = json.loads(data)
    except json.JSONDecodeError as e:
        raise ParseError(f"non-JSON frame: {data[:80]!r}") from e

    if not isinstance(message, dict) or not isinstance(message.get("type"), str):
        raise ParseError(f"frame without a type: {data[:80]!r}")
    return message


def iter_frames(lines: Iterable[str]) -> Iterator[str]:
    """Group raw lines into frame payloads."""
    data: list[str] = []
    for line in lines:
        line = line.rstrip("\r")
        if not line:
            if data:
                yield "\n".join(data)
                data = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if field == "data":
            data.append(value[1:] if value.startswith(" ") else value)


def iter_messages(lines: Iterable[str]) -> Iterator[dict[str, Any]]:
    """Yield decoded messages, skipping frames that don't parse."""
    for payload in iter_frames(lines):
        try:
            yield parse_payload(payload)
        except ParseError as e:
            _log.info("dropped frame: %s", e)
