from __future__ import annotations

from typing import List

from fastapi import HTTPException

from apps.api.schemas.events import (
    BatchFailureResponse,
    BatchResponse,
    CalendarResponse,
    EventView,
    SessionResponse,
)
from apps.api.sessions import SessionRegistry
from packages.core.bulk.models import BatchResult, Event, SessionState
from packages.core.bulk.session import BatchInProgress, begin_batch
from packages.core.bulk.temporal import marker_to_payload


def require_session(registry: SessionRegistry, session_id: str) -> SessionState:
    state = registry.get(session_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return state


def require_idle_session(registry: SessionRegistry, session_id: str) -> SessionState:
    state = require_session(registry, session_id)
    if state.busy:
        raise HTTPException(status_code=409, detail="batch_in_progress")
    return state


def claim_session(registry: SessionRegistry, session_id: str) -> SessionState:
    """Mark the session busy and return its idle snapshot."""
    state = require_session(registry, session_id)
    try:
        registry.put(session_id, begin_batch(state))
    except BatchInProgress as exc:
        raise HTTPException(status_code=409, detail="batch_in_progress") from exc
    return state


def to_event_view(event: Event, state: SessionState) -> EventView:
    return EventView(
        id=event.id,
        summary=event.summary,
        description=event.description,
        start=marker_to_payload(event.start),
        end=marker_to_payload(event.end) if event.end is not None else None,
        selected=event.id in state.selection,
        failed=event.id in state.failed_ids,
        raw=event.raw,
    )


def to_event_views(events: List[Event], state: SessionState) -> List[EventView]:
    return [to_event_view(event, state) for event in events]


def to_session_response(session_id: str, state: SessionState) -> SessionResponse:
    return SessionResponse(
        session_id=session_id,
        email=state.email,
        calendar_id=state.calendar_id,
        calendars=[
            CalendarResponse(id=calendar.id, summary=calendar.summary)
            for calendar in state.calendars
        ],
        event_count=len(state.events),
        selected_count=len(state.selection),
        failed_ids=sorted(state.failed_ids),
        busy=state.busy,
    )


def to_batch_response(result: BatchResult, state: SessionState) -> BatchResponse:
    return BatchResponse(
        operation=result.operation,
        succeeded=result.succeeded_ids,
        failed=[
            BatchFailureResponse(event_id=event_id, error=error)
            for event_id, error in result.failures.items()
        ],
        partial=result.is_partial_failure,
        refreshed=result.refreshed,
        events=to_event_views(state.events, state),
    )
