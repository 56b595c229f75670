from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Optional

from .models import Event, FilterCriteria
from .temporal import local_timezone, marker_instant


def _aware(value: Optional[dt.datetime], tz: dt.tzinfo) -> Optional[dt.datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=tz)


def matches(
    event: Event,
    search_term: str = "",
    window_start: Optional[dt.datetime] = None,
    window_end: Optional[dt.datetime] = None,
    tz: Optional[dt.tzinfo] = None,
) -> bool:
    if search_term and search_term.lower() not in event.summary.lower():
        return False
    if window_start is None and window_end is None:
        return True

    zone = tz or local_timezone()
    start = marker_instant(event.start, zone)
    lower = _aware(window_start, zone)
    if lower is not None and start < lower:
        return False
    upper = _aware(window_end, zone)
    if upper is not None:
        # open-ended events are bounded by their own start
        boundary = marker_instant(event.end, zone) if event.end is not None else start
        if boundary > upper:
            return False
    return True


def filter_events(
    events: Iterable[Event],
    search_term: str = "",
    window_start: Optional[dt.datetime] = None,
    window_end: Optional[dt.datetime] = None,
    tz: Optional[dt.tzinfo] = None,
) -> List[Event]:
    """Return the events passing every criterion, in their original order."""
    if window_start is not None or window_end is not None:
        tz = tz or local_timezone()
    return [
        event
        for event in events
        if matches(event, search_term, window_start, window_end, tz)
    ]


def apply_criteria(
    events: Iterable[Event], criteria: FilterCriteria, tz: Optional[dt.tzinfo] = None
) -> List[Event]:
    return filter_events(
        events,
        search_term=criteria.search_term,
        window_start=criteria.window_start,
        window_end=criteria.window_end,
        tz=tz,
    )
