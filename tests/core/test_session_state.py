import asyncio
from dataclasses import replace
from zoneinfo import ZoneInfo

import pytest

from packages.core.bulk.models import EditDraft, FilterCriteria
from packages.core.bulk.session import (
    BatchInProgress,
    apply_edit_to_session,
    begin_batch,
    delete_from_session,
    open_session,
    refresh_events,
    selected_events,
    switch_calendar,
    toggle_event,
    toggle_visible,
    visible_events,
    with_criteria,
)
from packages.core.google.calendar import CalendarServiceError


UTC = ZoneInfo("UTC")


def _open(service, calendar_id=None):
    return asyncio.run(open_session(service, "token", "ops@example.com", calendar_id, UTC))


def test_open_session_loads_first_calendar(calendar_service):
    state = _open(calendar_service)

    assert state.calendar_id == "work"
    assert [calendar.id for calendar in state.calendars] == ["work", "home"]
    assert [event.id for event in state.events] == ["a", "b", "c"]
    assert state.selection == frozenset()


def test_open_session_honours_requested_calendar(calendar_service):
    state = _open(calendar_service, "home")

    assert state.calendar_id == "home"
    assert [event.id for event in state.events] == ["h1"]


def test_initial_fetch_errors_become_empty_results(calendar_service):
    calendar_service.calendars_error = CalendarServiceError("GET failed", status_code=500)

    state = _open(calendar_service)

    assert state.calendars == []
    assert state.calendar_id is None
    assert state.events == []

    calendar_service.calendars_error = None
    calendar_service.list_error = CalendarServiceError("GET failed", status_code=500)
    state = _open(calendar_service)
    assert state.calendar_id == "work"
    assert state.events == []


def test_selection_survives_filter_changes(calendar_service):
    state = toggle_event(_open(calendar_service), "a")

    state = with_criteria(state, FilterCriteria(search_term="demo"))

    assert [event.id for event in visible_events(state, UTC)] == ["b"]
    assert [event.id for event in selected_events(state)] == ["a"]


def test_toggle_unknown_event_raises(calendar_service):
    with pytest.raises(KeyError):
        toggle_event(_open(calendar_service), "missing")


def test_toggle_visible_only_touches_visible_events(calendar_service):
    state = toggle_event(_open(calendar_service), "a")
    state = with_criteria(state, FilterCriteria(search_term="e"))

    selected = toggle_visible(state, UTC)
    assert selected.selection == frozenset({"a", "b", "c"})

    cleared = toggle_visible(selected, UTC)
    assert cleared.selection == frozenset({"a"})


def test_begin_batch_rejects_busy_session(calendar_service):
    state = begin_batch(_open(calendar_service))

    assert state.busy
    with pytest.raises(BatchInProgress):
        begin_batch(state)


def test_edit_replaces_collection_with_batch_results(calendar_service):
    calendar_service.patch_failures["a"] = CalendarServiceError("PATCH failed", status_code=500)
    state = toggle_event(toggle_event(_open(calendar_service), "a"), "b")

    updated, result = asyncio.run(
        apply_edit_to_session(begin_batch(state), calendar_service, EditDraft(title="Review"), UTC)
    )

    assert not updated.busy
    assert [event.id for event in updated.events] == ["a", "b"]
    assert [event.summary for event in updated.events] == ["Standup", "Review"]
    assert updated.failed_ids == frozenset({"a"})
    assert updated.selection == frozenset({"a", "b"})
    assert result.failed_ids == ["a"]


def test_delete_prunes_selection(calendar_service):
    state = toggle_event(toggle_event(_open(calendar_service), "a"), "b")
    calendar_service.delete_failures["b"] = CalendarServiceError("DELETE failed", status_code=500)

    updated, result = asyncio.run(delete_from_session(state, calendar_service, UTC))

    assert [event.id for event in updated.events] == ["b", "c"]
    assert updated.selection == frozenset({"b"})
    assert updated.failed_ids == frozenset({"b"})
    assert result.succeeded_ids == ["a"]


def test_delete_without_refetch_drops_only_confirmed_deletes(calendar_service):
    state = toggle_event(toggle_event(_open(calendar_service), "a"), "b")
    calendar_service.delete_failures["b"] = CalendarServiceError("DELETE failed", status_code=500)
    calendar_service.list_error = CalendarServiceError("GET failed", status_code=503)

    updated, result = asyncio.run(delete_from_session(state, calendar_service, UTC))

    assert not result.refreshed
    assert [event.id for event in updated.events] == ["b", "c"]
    assert updated.selection == frozenset({"b"})


def test_switch_calendar_clears_selection(calendar_service):
    state = replace(toggle_event(_open(calendar_service), "a"), failed_ids=frozenset({"a"}))

    switched = asyncio.run(switch_calendar(state, calendar_service, "home", UTC))

    assert switched.calendar_id == "home"
    assert [event.id for event in switched.events] == ["h1"]
    assert switched.selection == frozenset()
    assert switched.failed_ids == frozenset()


def test_refresh_propagates_service_errors(calendar_service):
    state = _open(calendar_service)
    calendar_service.list_error = CalendarServiceError("GET failed", status_code=503)

    with pytest.raises(CalendarServiceError):
        asyncio.run(refresh_events(state, calendar_service, UTC))


def test_refresh_drops_vanished_selection(calendar_service):
    state = toggle_event(_open(calendar_service), "c")
    calendar_service.items["work"] = calendar_service.items["work"][:2]

    refreshed = asyncio.run(refresh_events(state, calendar_service, UTC))

    assert [event.id for event in refreshed.events] == ["a", "b"]
    assert refreshed.selection == frozenset()
