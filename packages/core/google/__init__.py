from .calendar import (
    CalendarService,
    CalendarServiceError,
    CalendarSummary,
    GoogleCalendarService,
    default_calendar_service,
)
from .oauth import (
    AuthorizationDenied,
    allowed_emails,
    authorize,
    fetch_userinfo,
    is_allowed,
)

__all__ = [
    "AuthorizationDenied",
    "CalendarService",
    "CalendarServiceError",
    "CalendarSummary",
    "GoogleCalendarService",
    "allowed_emails",
    "authorize",
    "default_calendar_service",
    "fetch_userinfo",
    "is_allowed",
]
