from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from ..google.calendar import CalendarSummary
from .temporal import MalformedTemporalInput, TemporalMarker, parse_marker, present


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    id: str
    summary: str
    description: Optional[str]
    start: TemporalMarker
    end: Optional[TemporalMarker]
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, item: Dict[str, Any], tz: Optional[dt.tzinfo] = None) -> "Event":
        event_id = item.get("id")
        if not event_id:
            raise ValueError("event payload has no id")
        start = item.get("start")
        if not isinstance(start, dict):
            raise MalformedTemporalInput(f"event {event_id} has no start")
        end = item.get("end")
        return cls(
            id=event_id,
            summary=item.get("summary") or "",
            description=item.get("description"),
            start=parse_marker(start, tz),
            end=parse_marker(end, tz) if isinstance(end, dict) and end else None,
            raw=dict(item),
        )


def parse_events(items: Iterable[Dict[str, Any]], tz: Optional[dt.tzinfo] = None) -> List[Event]:
    events = []
    for item in items:
        try:
            events.append(Event.from_api(item, tz))
        except ValueError as exc:
            logger.warning("Skipping unreadable event %s: %s", item.get("id"), exc)
    return events


@dataclass(frozen=True)
class EditDraft:
    """Partial edit applied to every event of a batch. ``None`` means untouched."""

    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    start_time: Optional[str] = None
    end_date: Optional[str] = None
    end_time: Optional[str] = None
    all_day: bool = False

    @property
    def touches_start(self) -> bool:
        return present(self.start_date) is not None or present(self.start_time) is not None

    @property
    def touches_end(self) -> bool:
        return present(self.end_date) is not None or present(self.end_time) is not None


@dataclass(frozen=True)
class FilterCriteria:
    search_term: str = ""
    window_start: Optional[dt.datetime] = None
    window_end: Optional[dt.datetime] = None


class PartialBatchFailure(Exception):
    def __init__(self, operation: str, failed_ids: List[str]) -> None:
        super().__init__(f"{operation} failed for {len(failed_ids)} event(s): {', '.join(failed_ids)}")
        self.operation = operation
        self.failed_ids = failed_ids


@dataclass(frozen=True)
class EventOutcome:
    event_id: str
    ok: bool
    event: Optional[Event] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, event_id: str, event: Optional[Event] = None) -> "EventOutcome":
        return cls(event_id=event_id, ok=True, event=event)

    @classmethod
    def failure(cls, event_id: str, error: str) -> "EventOutcome":
        return cls(event_id=event_id, ok=False, error=error)


@dataclass(frozen=True)
class BatchResult:
    operation: str
    outcomes: List[EventOutcome]
    events: List[Event]
    refreshed: bool = True

    @property
    def succeeded_ids(self) -> List[str]:
        return [outcome.event_id for outcome in self.outcomes if outcome.ok]

    @property
    def failed_ids(self) -> List[str]:
        return [outcome.event_id for outcome in self.outcomes if not outcome.ok]

    @property
    def failures(self) -> Dict[str, str]:
        return {
            outcome.event_id: outcome.error or "unknown_error"
            for outcome in self.outcomes
            if not outcome.ok
        }

    @property
    def is_success(self) -> bool:
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def is_partial_failure(self) -> bool:
        return not self.is_success and any(outcome.ok for outcome in self.outcomes)

    def raise_for_failures(self) -> None:
        if not self.is_success:
            raise PartialBatchFailure(self.operation, self.failed_ids)


@dataclass(frozen=True)
class SessionState:
    token: str
    email: str
    calendars: List[CalendarSummary] = field(default_factory=list)
    calendar_id: Optional[str] = None
    events: List[Event] = field(default_factory=list)
    selection: FrozenSet[str] = frozenset()
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    failed_ids: FrozenSet[str] = frozenset()
    busy: bool = False
