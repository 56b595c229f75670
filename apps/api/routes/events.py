from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException

from apps.api import sessions
from apps.api.schemas.events import (
    BatchResponse,
    EditRequest,
    EventListResponse,
    SelectionResponse,
    SelectionToggleRequest,
)
from apps.api.views import (
    claim_session,
    require_idle_session,
    require_session,
    to_batch_response,
    to_event_views,
)
from packages.core.bulk import selection
from packages.core.bulk.models import FilterCriteria
from packages.core.bulk.session import (
    apply_edit_to_session,
    delete_from_session,
    refresh_events,
    toggle_event,
    toggle_visible,
    visible_events,
    with_criteria,
)
from packages.core.google.calendar import CalendarServiceError


router = APIRouter(prefix="/api/sessions/{session_id}", tags=["events"])


@router.get("/events", response_model=EventListResponse)
def list_events(
    session_id: str,
    q: str = "",
    window_start: Optional[datetime] = None,
    window_end: Optional[datetime] = None,
) -> EventListResponse:
    registry = sessions.get_registry()
    state = require_idle_session(registry, session_id)
    state = with_criteria(
        state,
        FilterCriteria(search_term=q, window_start=window_start, window_end=window_end),
    )
    registry.put(session_id, state)
    visible = visible_events(state)
    return EventListResponse(
        events=to_event_views(visible, state),
        total=len(state.events),
        selected_count=len(state.selection),
        all_visible_selected=selection.all_visible_selected(state.selection, visible),
    )


@router.post("/events/refresh", response_model=EventListResponse)
async def refresh(session_id: str) -> EventListResponse:
    registry = sessions.get_registry()
    state = claim_session(registry, session_id)
    updated = state
    try:
        async with sessions.open_calendar_service(state.token) as service:
            updated = await refresh_events(state, service)
    except CalendarServiceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    finally:
        registry.put(session_id, replace(updated, busy=False))
    visible = visible_events(updated)
    return EventListResponse(
        events=to_event_views(visible, updated),
        total=len(updated.events),
        selected_count=len(updated.selection),
        all_visible_selected=selection.all_visible_selected(updated.selection, visible),
    )


def _selection_response(state) -> SelectionResponse:
    visible = visible_events(state)
    return SelectionResponse(
        selected_ids=sorted(state.selection),
        all_visible_selected=selection.all_visible_selected(state.selection, visible),
    )


@router.post("/selection/toggle", response_model=SelectionResponse)
def toggle_one(session_id: str, payload: SelectionToggleRequest) -> SelectionResponse:
    registry = sessions.get_registry()
    state = require_idle_session(registry, session_id)
    try:
        state = toggle_event(state, payload.event_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    registry.put(session_id, state)
    return _selection_response(state)


@router.post("/selection/visible", response_model=SelectionResponse)
def toggle_all_visible(session_id: str) -> SelectionResponse:
    registry = sessions.get_registry()
    state = toggle_visible(require_idle_session(registry, session_id))
    registry.put(session_id, state)
    return _selection_response(state)


def _check_batch(session_id: str):
    registry = sessions.get_registry()
    state = require_session(registry, session_id)
    if not state.calendar_id:
        raise HTTPException(status_code=400, detail="no_calendar_selected")
    if not state.selection:
        raise HTTPException(status_code=400, detail="no_events_selected")
    return registry, claim_session(registry, session_id)


@router.post("/edit", response_model=BatchResponse)
async def edit(session_id: str, payload: EditRequest) -> BatchResponse:
    registry, state = _check_batch(session_id)
    updated = state
    try:
        async with sessions.open_calendar_service(state.token) as service:
            updated, result = await apply_edit_to_session(state, service, payload.to_draft())
    finally:
        registry.put(session_id, replace(updated, busy=False))
    return to_batch_response(result, updated)


@router.post("/delete", response_model=BatchResponse)
async def delete(session_id: str) -> BatchResponse:
    registry, state = _check_batch(session_id)
    updated = state
    try:
        async with sessions.open_calendar_service(state.token) as service:
            updated, result = await delete_from_session(state, service)
    finally:
        registry.put(session_id, replace(updated, busy=False))
    return to_batch_response(result, updated)
