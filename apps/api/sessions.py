from __future__ import annotations

import uuid
from typing import Dict, Optional

from packages.core.bulk.models import SessionState
from packages.core.google.calendar import GoogleCalendarService, default_calendar_service


class SessionRegistry:
    """In-memory operator sessions keyed by an opaque id."""

    def __init__(self) -> None:
        self._sessions: Dict[str, SessionState] = {}

    def create(self, state: SessionState) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = state
        return session_id

    def get(self, session_id: str) -> Optional[SessionState]:
        return self._sessions.get(session_id)

    def put(self, session_id: str, state: SessionState) -> None:
        self._sessions[session_id] = state

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None


_REGISTRY = SessionRegistry()


def get_registry() -> SessionRegistry:
    return _REGISTRY


def open_calendar_service(token: str) -> GoogleCalendarService:
    return default_calendar_service(token)
