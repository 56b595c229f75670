import asyncio
from typing import Any, Dict, List, Optional, Set

import pytest

from packages.core.google.calendar import CalendarServiceError, CalendarSummary


class FakeCalendarService:
    """In-memory stand-in for the calendar REST API."""

    def __init__(self) -> None:
        self.calendars: List[CalendarSummary] = []
        self.items: Dict[str, List[Dict[str, Any]]] = {}
        self.patch_failures: Dict[str, CalendarServiceError] = {}
        self.delete_failures: Dict[str, CalendarServiceError] = {}
        self.ghost_deletes: Set[str] = set()
        self.calendars_error: Optional[CalendarServiceError] = None
        self.list_error: Optional[CalendarServiceError] = None
        self.patches: List[tuple] = []
        self.deletes: List[tuple] = []
        self.closed = False

    async def __aenter__(self) -> "FakeCalendarService":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.closed = True

    async def list_calendars(self) -> List[CalendarSummary]:
        if self.calendars_error is not None:
            raise self.calendars_error
        return list(self.calendars)

    async def list_upcoming(self, calendar_id: str, time_min: Optional[str] = None):
        if self.list_error is not None:
            raise self.list_error
        return [dict(item) for item in self.items.get(calendar_id, [])]

    async def patch_event(self, calendar_id: str, event_id: str, payload: Dict[str, Any]):
        self.patches.append((calendar_id, event_id, payload))
        await asyncio.sleep(0)
        if event_id in self.patch_failures:
            raise self.patch_failures[event_id]
        for item in self.items.get(calendar_id, []):
            if item["id"] == event_id:
                item.update(payload)
                return dict(item)
        raise CalendarServiceError("not found", status_code=404, detail="Not Found")

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        self.deletes.append((calendar_id, event_id))
        await asyncio.sleep(0)
        items = self.items.get(calendar_id, [])
        if event_id in self.delete_failures:
            if event_id in self.ghost_deletes:
                self.items[calendar_id] = [item for item in items if item["id"] != event_id]
            raise self.delete_failures[event_id]
        remaining = [item for item in items if item["id"] != event_id]
        if len(remaining) == len(items):
            raise CalendarServiceError("gone", status_code=410, detail="Resource has been deleted")
        self.items[calendar_id] = remaining


@pytest.fixture
def calendar_service() -> FakeCalendarService:
    service = FakeCalendarService()
    service.calendars = [
        CalendarSummary(id="work", summary="Work"),
        CalendarSummary(id="home", summary="Home"),
    ]
    service.items = {
        "work": [
            {
                "id": "a",
                "summary": "Standup",
                "start": {"dateTime": "2024-06-03T09:00:00Z"},
                "end": {"dateTime": "2024-06-03T09:15:00Z"},
            },
            {
                "id": "b",
                "summary": "Demo",
                "description": "Sprint demo",
                "start": {"date": "2024-06-05"},
                "end": {"date": "2024-06-06"},
            },
            {
                "id": "c",
                "summary": "Team lunch",
                "start": {"dateTime": "2024-06-07T12:00:00Z"},
            },
        ],
        "home": [
            {
                "id": "h1",
                "summary": "Dentist",
                "start": {"dateTime": "2024-06-04T15:00:00Z"},
                "end": {"dateTime": "2024-06-04T16:00:00Z"},
            },
        ],
    }
    return service
