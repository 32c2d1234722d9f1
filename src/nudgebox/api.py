"""HTTP client for the backend's read endpoints."""

from __future__ import annotations

from typing import Any

import httpx

from .errors import SourceFetchError
from .log import get_logger

_log = get_logger("api")

# Keys a list response may be wrapped in, e.g. {"success": true, "events": [...]}
_LIST_KEYS = ("events", "meetings", "documents", "docs", "data", "items")


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"} if token else {}


def _unwrap_list(source: str, body: Any) -> list[Any]:
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for key in _LIST_KEYS:
            if isinstance(body.get(key), list):
                return body[key]
    raise SourceFetchError(source, f"unexpected response shape: {type(body).__name__}")


class BackendClient:
    """Read-only access to calendar events, meetings and documents.

    Every method returns the raw records or raises SourceFetchError.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=auth_headers(token),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def _get_list(self, source: str, path: str) -> list[Any]:
        try:
            response = self.client.get(path)
        except httpx.HTTPError as e:
            raise SourceFetchError(source, str(e)) from e

        if response.status_code >= 400:
            raise SourceFetchError(source, f"HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as e:
            raise SourceFetchError(source, f"invalid JSON: {e}") from e

        records = _unwrap_list(source, body)
        _log.debug("%s: %d record(s)", source, len(records))
        return records

    def get_all_events(self) -> list[Any]:
        return self._get_list("calendar", "/calendar/events")

    def get_user_meetings(self) -> list[Any]:
        return self._get_list("meeting", "/meetings/user")

    def get_documents_for_user(self) -> list[Any]:
        return self._get_list("document", "/employee/hr-docs")
