from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from packages.core.bulk.models import EditDraft


class SessionCreateRequest(BaseModel):
    calendar_id: Optional[str] = None


class CalendarResponse(BaseModel):
    id: str
    summary: str


class SessionResponse(BaseModel):
    session_id: str
    email: str
    calendar_id: Optional[str]
    calendars: List[CalendarResponse]
    event_count: int
    selected_count: int
    failed_ids: List[str]
    busy: bool


class CalendarSwitchRequest(BaseModel):
    calendar_id: str = Field(..., min_length=1)


class EventView(BaseModel):
    id: str
    summary: str
    description: Optional[str]
    start: Dict[str, str]
    end: Optional[Dict[str, str]]
    selected: bool
    failed: bool
    raw: Dict[str, Any]


class EventListResponse(BaseModel):
    events: List[EventView]
    total: int
    selected_count: int
    all_visible_selected: bool


class SelectionToggleRequest(BaseModel):
    event_id: str = Field(..., min_length=1)


class SelectionResponse(BaseModel):
    selected_ids: List[str]
    all_visible_selected: bool


class EditRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    start_time: Optional[str] = Field(default=None, description="HH:MM")
    end_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    end_time: Optional[str] = Field(default=None, description="HH:MM")
    all_day: bool = False

    @field_validator("title", "description", "start_date", "start_time", "end_date", "end_time")
    @classmethod
    def _blank_is_untouched(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value

    def to_draft(self) -> EditDraft:
        return EditDraft(
            title=self.title,
            description=self.description,
            start_date=self.start_date,
            start_time=self.start_time,
            end_date=self.end_date,
            end_time=self.end_time,
            all_day=self.all_day,
        )


class BatchFailureResponse(BaseModel):
    event_id: str
    error: str


class BatchResponse(BaseModel):
    operation: str
    succeeded: List[str]
    failed: List[BatchFailureResponse]
    partial: bool
    refreshed: bool
    events: List[EventView]
