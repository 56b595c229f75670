from .dispatcher import apply_edit, build_patch_payload, delete_selected
from .filters import apply_criteria, filter_events
from .models import (
    BatchResult,
    EditDraft,
    Event,
    EventOutcome,
    FilterCriteria,
    PartialBatchFailure,
    SessionState,
)
from .selection import all_visible_selected, select_all_visible, toggle
from .temporal import (
    AllDayDate,
    MalformedTemporalInput,
    TemporalMarker,
    TimedInstant,
    resolve_merge,
)

__all__ = [
    "AllDayDate",
    "BatchResult",
    "EditDraft",
    "Event",
    "EventOutcome",
    "FilterCriteria",
    "MalformedTemporalInput",
    "PartialBatchFailure",
    "SessionState",
    "TemporalMarker",
    "TimedInstant",
    "all_visible_selected",
    "apply_criteria",
    "apply_edit",
    "build_patch_payload",
    "delete_selected",
    "filter_events",
    "resolve_merge",
    "select_all_visible",
    "toggle",
]
