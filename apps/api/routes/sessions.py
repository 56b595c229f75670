from __future__ import annotations

from dataclasses import replace
from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException

from apps.api import sessions
from apps.api.schemas.events import (
    CalendarResponse,
    CalendarSwitchRequest,
    SessionCreateRequest,
    SessionResponse,
)
from apps.api.views import claim_session, require_session, to_session_response
from packages.core.bulk.session import open_session, switch_calendar
from packages.core.google import oauth


router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing bearer token")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()


@router.post("", response_model=SessionResponse)
async def create(
    payload: Optional[SessionCreateRequest] = None,
    authorization: Optional[str] = Header(default=None),
) -> SessionResponse:
    token = _bearer_token(authorization)
    try:
        email = await oauth.authorize(token)
    except oauth.AuthorizationDenied as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc

    calendar_id = payload.calendar_id if payload else None
    async with sessions.open_calendar_service(token) as service:
        state = await open_session(service, token, email, calendar_id=calendar_id)
    registry = sessions.get_registry()
    session_id = registry.create(state)
    return to_session_response(session_id, state)


@router.get("/{session_id}", response_model=SessionResponse)
def get(session_id: str) -> SessionResponse:
    state = require_session(sessions.get_registry(), session_id)
    return to_session_response(session_id, state)


@router.delete("/{session_id}")
def close(session_id: str):
    if not sessions.get_registry().remove(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"closed": True}


@router.get("/{session_id}/calendars", response_model=List[CalendarResponse])
def list_calendars(session_id: str) -> List[CalendarResponse]:
    state = require_session(sessions.get_registry(), session_id)
    return [
        CalendarResponse(id=calendar.id, summary=calendar.summary)
        for calendar in state.calendars
    ]


@router.put("/{session_id}/calendar", response_model=SessionResponse)
async def select_calendar(session_id: str, payload: CalendarSwitchRequest) -> SessionResponse:
    registry = sessions.get_registry()
    state = claim_session(registry, session_id)
    updated = state
    try:
        async with sessions.open_calendar_service(state.token) as service:
            updated = await switch_calendar(state, service, payload.calendar_id)
    finally:
        registry.put(session_id, replace(updated, busy=False))
    return to_session_response(session_id, updated)
