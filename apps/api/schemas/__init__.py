from .events import (
    BatchFailureResponse,
    BatchResponse,
    CalendarResponse,
    CalendarSwitchRequest,
    EditRequest,
    EventListResponse,
    EventView,
    SelectionResponse,
    SelectionToggleRequest,
    SessionCreateRequest,
    SessionResponse,
)

__all__ = [
    "BatchFailureResponse",
    "BatchResponse",
    "CalendarResponse",
    "CalendarSwitchRequest",
    "EditRequest",
    "EventListResponse",
    "EventView",
    "SelectionResponse",
    "SelectionToggleRequest",
    "SessionCreateRequest",
    "SessionResponse",
]
