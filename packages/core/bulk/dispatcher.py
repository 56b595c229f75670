from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Dict, Iterable, Optional

from ..google.calendar import CalendarService, CalendarServiceError
from .models import BatchResult, EditDraft, Event, EventOutcome, parse_events
from .temporal import (
    MalformedTemporalInput,
    local_timezone,
    marker_to_payload,
    present,
    resolve_merge,
)


logger = logging.getLogger(__name__)


def build_patch_payload(
    event: Event, draft: EditDraft, tz: Optional[dt.tzinfo] = None
) -> Dict[str, Any]:
    """Build the partial update body for one event.

    Each boundary is resolved on its own. An all-day edit that only carries an
    end date leaves ``start`` out of the body. An event without an end gets one
    only when the draft has end fields; missing parts come from its start.
    """
    payload: Dict[str, Any] = {}
    title = present(draft.title)
    if title is not None:
        payload["summary"] = title
    description = present(draft.description)
    if description is not None:
        payload["description"] = description

    if draft.touches_start:
        start = resolve_merge(event.start, draft.start_date, draft.start_time, draft.all_day, tz)
        if start is not None:
            payload["start"] = marker_to_payload(start)
    if draft.touches_end:
        existing_end = event.end if event.end is not None else event.start
        end = resolve_merge(existing_end, draft.end_date, draft.end_time, draft.all_day, tz)
        if end is not None:
            payload["end"] = marker_to_payload(end)
    return payload


async def _patch_one(
    service: CalendarService,
    calendar_id: str,
    event: Event,
    draft: EditDraft,
    tz: dt.tzinfo,
) -> EventOutcome:
    try:
        payload = build_patch_payload(event, draft, tz)
    except MalformedTemporalInput as exc:
        logger.warning("Not updating event %s: %s", event.id, exc)
        return EventOutcome.failure(event.id, str(exc))
    try:
        item = await service.patch_event(calendar_id, event.id, payload)
    except CalendarServiceError as exc:
        logger.warning("Error updating event %s: %s", event.id, exc)
        return EventOutcome.failure(event.id, str(exc))
    try:
        updated = Event.from_api(item, tz)
    except ValueError as exc:
        logger.warning("Unreadable update response for event %s: %s", event.id, exc)
        return EventOutcome.failure(event.id, f"unreadable_response: {exc}")
    logger.debug("Event updated: %s", event.id)
    return EventOutcome.success(event.id, updated)


async def _delete_one(service: CalendarService, calendar_id: str, event: Event) -> EventOutcome:
    try:
        await service.delete_event(calendar_id, event.id)
    except CalendarServiceError as exc:
        logger.warning("Error deleting event %s: %s", event.id, exc)
        return EventOutcome.failure(event.id, str(exc))
    logger.debug("Event deleted: %s", event.id)
    return EventOutcome.success(event.id)


def _log_result(result: BatchResult, calendar_id: str) -> None:
    if result.is_success:
        logger.info(
            "%s batch on %s: %d event(s) done",
            result.operation,
            calendar_id,
            len(result.outcomes),
        )
    else:
        logger.warning(
            "%s batch on %s: %d of %d event(s) failed: %s",
            result.operation,
            calendar_id,
            len(result.failed_ids),
            len(result.outcomes),
            ", ".join(result.failed_ids),
        )


async def apply_edit(
    service: CalendarService,
    calendar_id: str,
    selected: Iterable[Event],
    draft: EditDraft,
    tz: Optional[dt.tzinfo] = None,
) -> BatchResult:
    """PATCH every selected event concurrently; one failure never stops the rest.

    The resulting collection holds the server copy of each updated event and
    the previous snapshot of each event that failed.
    """
    events = list(selected)
    zone = tz or local_timezone()
    logger.info("Updating %d event(s) in %s", len(events), calendar_id)
    outcomes = await asyncio.gather(
        *(_patch_one(service, calendar_id, event, draft, zone) for event in events)
    )
    resulting = [
        outcome.event if outcome.ok and outcome.event is not None else event
        for outcome, event in zip(outcomes, events)
    ]
    result = BatchResult(operation="edit", outcomes=list(outcomes), events=resulting)
    _log_result(result, calendar_id)
    return result


async def delete_selected(
    service: CalendarService,
    calendar_id: str,
    selected: Iterable[Event],
    time_min: Optional[str] = None,
    tz: Optional[dt.tzinfo] = None,
) -> BatchResult:
    """DELETE every selected event concurrently, then refetch upcoming events.

    A delete counts as failed whenever the call fails, even if the refetch
    shows the event is gone. When the refetch fails ``refreshed`` is False and
    ``events`` is empty.
    """
    events = list(selected)
    logger.info("Deleting %d event(s) from %s", len(events), calendar_id)
    outcomes = await asyncio.gather(
        *(_delete_one(service, calendar_id, event) for event in events)
    )
    try:
        items = await service.list_upcoming(calendar_id, time_min=time_min)
    except CalendarServiceError as exc:
        logger.warning("Error refetching events for %s: %s", calendar_id, exc)
        result = BatchResult(
            operation="delete", outcomes=list(outcomes), events=[], refreshed=False
        )
    else:
        result = BatchResult(
            operation="delete", outcomes=list(outcomes), events=parse_events(items, tz)
        )
    _log_result(result, calendar_id)
    return result
