from __future__ import annotations

from typing import AbstractSet, FrozenSet, Iterable

from .models import Event


def is_selected(selection: AbstractSet[str], event: Event) -> bool:
    return event.id in selection


def toggle(selection: AbstractSet[str], event: Event) -> FrozenSet[str]:
    if event.id in selection:
        return frozenset(selection) - {event.id}
    return frozenset(selection) | {event.id}


def all_visible_selected(selection: AbstractSet[str], visible: Iterable[Event]) -> bool:
    """True when the visible set is non-empty and every visible event is selected."""
    ids = {event.id for event in visible}
    return bool(ids) and ids <= selection


def select_all_visible(
    selection: AbstractSet[str],
    visible: Iterable[Event],
    currently_all_selected: bool,
) -> FrozenSet[str]:
    """Select or deselect the visible events only; hidden selections are kept."""
    ids = {event.id for event in visible}
    if currently_all_selected:
        return frozenset(selection) - ids
    return frozenset(selection) | ids
