from __future__ import annotations

import datetime as dt
import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from ..google.calendar import CalendarService, CalendarServiceError
from . import dispatcher, selection
from .filters import apply_criteria
from .models import BatchResult, EditDraft, Event, FilterCriteria, SessionState, parse_events


logger = logging.getLogger(__name__)


class BatchInProgress(Exception):
    pass


async def _fetch_events(
    service: CalendarService, calendar_id: str, tz: Optional[dt.tzinfo] = None
) -> List[Event]:
    try:
        items = await service.list_upcoming(calendar_id)
    except CalendarServiceError as exc:
        logger.error("Error fetching events for %s: %s", calendar_id, exc)
        return []
    return parse_events(items, tz)


async def open_session(
    service: CalendarService,
    token: str,
    email: str,
    calendar_id: Optional[str] = None,
    tz: Optional[dt.tzinfo] = None,
) -> SessionState:
    """Load calendars and the upcoming events of the chosen (or first) calendar."""
    try:
        calendars = await service.list_calendars()
    except CalendarServiceError as exc:
        logger.error("Error fetching calendars: %s", exc)
        calendars = []
    chosen = calendar_id or (calendars[0].id if calendars else None)
    events = await _fetch_events(service, chosen, tz) if chosen else []
    logger.info("Session opened for %s on %s with %d event(s)", email, chosen, len(events))
    return SessionState(
        token=token,
        email=email,
        calendars=calendars,
        calendar_id=chosen,
        events=events,
    )


async def switch_calendar(
    state: SessionState,
    service: CalendarService,
    calendar_id: str,
    tz: Optional[dt.tzinfo] = None,
) -> SessionState:
    events = await _fetch_events(service, calendar_id, tz)
    return replace(
        state,
        calendar_id=calendar_id,
        events=events,
        selection=frozenset(),
        failed_ids=frozenset(),
    )


async def refresh_events(
    state: SessionState, service: CalendarService, tz: Optional[dt.tzinfo] = None
) -> SessionState:
    """Refetch the current calendar. Service errors propagate to the caller."""
    if not state.calendar_id:
        return state
    items = await service.list_upcoming(state.calendar_id)
    events = parse_events(items, tz)
    present_ids = {event.id for event in events}
    return replace(
        state,
        events=events,
        selection=state.selection & present_ids,
        failed_ids=frozenset(),
    )


def with_criteria(state: SessionState, criteria: FilterCriteria) -> SessionState:
    return replace(state, criteria=criteria)


def visible_events(state: SessionState, tz: Optional[dt.tzinfo] = None) -> List[Event]:
    return apply_criteria(state.events, state.criteria, tz)


def selected_events(state: SessionState) -> List[Event]:
    return [event for event in state.events if event.id in state.selection]


def toggle_event(state: SessionState, event_id: str) -> SessionState:
    for event in state.events:
        if event.id == event_id:
            return replace(state, selection=selection.toggle(state.selection, event))
    raise KeyError(event_id)


def toggle_visible(state: SessionState, tz: Optional[dt.tzinfo] = None) -> SessionState:
    visible = visible_events(state, tz)
    flag = selection.all_visible_selected(state.selection, visible)
    return replace(
        state, selection=selection.select_all_visible(state.selection, visible, flag)
    )


def begin_batch(state: SessionState) -> SessionState:
    if state.busy:
        raise BatchInProgress("a batch is already running for this session")
    return replace(state, busy=True)


async def apply_edit_to_session(
    state: SessionState,
    service: CalendarService,
    draft: EditDraft,
    tz: Optional[dt.tzinfo] = None,
) -> Tuple[SessionState, BatchResult]:
    result = await dispatcher.apply_edit(
        service, state.calendar_id, selected_events(state), draft, tz
    )
    updated = replace(
        state,
        events=result.events,
        failed_ids=frozenset(result.failed_ids),
        busy=False,
    )
    return updated, result


async def delete_from_session(
    state: SessionState,
    service: CalendarService,
    tz: Optional[dt.tzinfo] = None,
) -> Tuple[SessionState, BatchResult]:
    result = await dispatcher.delete_selected(
        service, state.calendar_id, selected_events(state), tz=tz
    )
    if result.refreshed:
        events = result.events
    else:
        deleted = set(result.succeeded_ids)
        events = [event for event in state.events if event.id not in deleted]
    present_ids = {event.id for event in events}
    updated = replace(
        state,
        events=events,
        selection=state.selection & present_ids,
        failed_ids=frozenset(result.failed_ids),
        busy=False,
    )
    return updated, result
