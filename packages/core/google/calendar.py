from __future__ import annotations

import datetime as dt
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx


CALENDAR_BASE_URL = "https://www.googleapis.com/calendar/v3"

logger = logging.getLogger(__name__)


class CalendarServiceError(Exception):
    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


@dataclass(frozen=True)
class CalendarSummary:
    id: str
    summary: str


class CalendarService(Protocol):
    async def list_calendars(self) -> List[CalendarSummary]:
        """Return the calendars visible to the token, in service order."""

    async def list_upcoming(
        self, calendar_id: str, time_min: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Return single-instance events from ``time_min`` on, ordered by start."""

    async def patch_event(
        self, calendar_id: str, event_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Apply a partial update and return the full updated event."""

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        """Delete one event. Raises CalendarServiceError unless the service answers 204."""


def _base_url() -> str:
    return os.getenv("CALENDAR_BASE_URL", CALENDAR_BASE_URL)


def _timeout() -> float:
    return float(os.getenv("CALENDAR_HTTP_TIMEOUT", "15"))


def _segment(value: str) -> str:
    return quote(value, safe="")


def _now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str):
            return error
    return response.text


def _json(response: httpx.Response) -> Dict[str, Any]:
    request = response.request
    try:
        body = response.json()
    except ValueError as exc:
        raise CalendarServiceError(
            f"{request.method} {request.url.path} returned an unreadable body",
            status_code=response.status_code,
            detail=response.text[:200],
        ) from exc
    if not isinstance(body, dict):
        raise CalendarServiceError(
            f"{request.method} {request.url.path} returned {type(body).__name__}, "
            "expected an object",
            status_code=response.status_code,
        )
    return body


def _items(body: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = body.get("items") or []
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


class GoogleCalendarService:
    """Async client for the Calendar v3 REST API, bound to one bearer token."""

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or _base_url(),
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout if timeout is not None else _timeout(),
            transport=transport,
        )

    async def __aenter__(self) -> "GoogleCalendarService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        expected_status: Optional[int] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise CalendarServiceError(f"{method} {path} failed: {exc}") from exc
        unexpected = (
            response.status_code != expected_status
            if expected_status is not None
            else response.is_error
        )
        if unexpected:
            detail = _error_detail(response)
            raise CalendarServiceError(
                f"{method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
                detail=detail,
            )
        return response

    async def list_calendars(self) -> List[CalendarSummary]:
        response = await self._request("GET", "/users/me/calendarList")
        return [
            CalendarSummary(id=item.get("id", ""), summary=item.get("summary", ""))
            for item in _items(_json(response))
        ]

    async def list_upcoming(
        self, calendar_id: str, time_min: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params: Dict[str, Any] = {
            "timeMin": time_min or _now_iso(),
            "singleEvents": "true",
            "orderBy": "startTime",
        }
        items: List[Dict[str, Any]] = []
        while True:
            response = await self._request(
                "GET", f"/calendars/{_segment(calendar_id)}/events", params=params
            )
            body = _json(response)
            items.extend(_items(body))
            page_token = body.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}
        logger.debug("Fetched %d events from %s", len(items), calendar_id)
        return items

    async def patch_event(
        self, calendar_id: str, event_id: str, payload: Dict[str, Any]
    ) -> Dict[str, Any]:
        response = await self._request(
            "PATCH",
            f"/calendars/{_segment(calendar_id)}/events/{_segment(event_id)}",
            json=payload,
        )
        return _json(response)

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        await self._request(
            "DELETE",
            f"/calendars/{_segment(calendar_id)}/events/{_segment(event_id)}",
            expected_status=204,
        )


def default_calendar_service(token: str) -> GoogleCalendarService:
    return GoogleCalendarService(token=token)
