from __future__ import annotations

import datetime as dt
import os
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class MalformedTemporalInput(ValueError):
    pass


@dataclass(frozen=True)
class AllDayDate:
    day: dt.date


@dataclass(frozen=True)
class TimedInstant:
    instant: dt.datetime

    def __post_init__(self) -> None:
        if self.instant.tzinfo is None:
            raise MalformedTemporalInput("timed instant must be timezone-aware")


TemporalMarker = Union[AllDayDate, TimedInstant]


_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})(?::(?P<second>\d{2}))?$")


def local_timezone() -> dt.tzinfo:
    name = os.getenv("CALENDAR_TIMEZONE", "").strip()
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise RuntimeError(f"Unknown CALENDAR_TIMEZONE: {name}") from exc
    return dt.datetime.now().astimezone().tzinfo


def parse_date(value: str) -> dt.date:
    value = value.strip()
    if not _DATE_RE.match(value):
        raise MalformedTemporalInput(f"invalid date: {value!r}")
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise MalformedTemporalInput(f"invalid date: {value!r}") from exc


def parse_time(value: str) -> dt.time:
    value = value.strip()
    match = _TIME_RE.match(value)
    if not match:
        raise MalformedTemporalInput(f"invalid time: {value!r}")
    try:
        return dt.time(
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second") or 0),
        )
    except ValueError as exc:
        raise MalformedTemporalInput(f"invalid time: {value!r}") from exc


def parse_datetime(value: str, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    """Parse an RFC 3339 string; naive values are read in the local zone."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = dt.datetime.fromisoformat(text)
    except ValueError as exc:
        raise MalformedTemporalInput(f"invalid dateTime: {value!r}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or local_timezone())
    return parsed


def format_instant(value: dt.datetime) -> str:
    return value.astimezone(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def parse_marker(payload: Dict[str, Any], tz: Optional[dt.tzinfo] = None) -> TemporalMarker:
    date_time = payload.get("dateTime")
    if isinstance(date_time, str) and date_time.strip():
        return TimedInstant(parse_datetime(date_time, tz))
    date_value = payload.get("date")
    if isinstance(date_value, str) and date_value.strip():
        return AllDayDate(parse_date(date_value))
    raise MalformedTemporalInput("marker has neither dateTime nor date")


def marker_to_payload(marker: TemporalMarker) -> Dict[str, str]:
    if isinstance(marker, AllDayDate):
        return {"date": marker.day.isoformat()}
    if isinstance(marker, TimedInstant):
        return {"dateTime": format_instant(marker.instant)}
    raise TypeError(f"unknown temporal marker: {marker!r}")


def marker_instant(marker: TemporalMarker, tz: Optional[dt.tzinfo] = None) -> dt.datetime:
    """Resolve a marker to an aware instant. All-day dates count as local midnight."""
    if isinstance(marker, AllDayDate):
        return dt.datetime.combine(marker.day, dt.time(0, 0), tzinfo=tz or local_timezone())
    if isinstance(marker, TimedInstant):
        return marker.instant
    raise TypeError(f"unknown temporal marker: {marker!r}")


def _local_parts(marker: TemporalMarker, tz: dt.tzinfo) -> Tuple[dt.date, dt.time]:
    if isinstance(marker, AllDayDate):
        return marker.day, dt.time(0, 0)
    if isinstance(marker, TimedInstant):
        local = marker.instant.astimezone(tz)
        return local.date(), local.time()
    raise TypeError(f"unknown temporal marker: {marker!r}")


def present(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_merge(
    existing: Optional[TemporalMarker],
    draft_date: Optional[str],
    draft_time: Optional[str],
    all_day: bool,
    tz: Optional[dt.tzinfo] = None,
) -> Optional[TemporalMarker]:
    """Merge draft date/time fields onto one boundary of an event.

    Returns ``None`` when the boundary should be left out of the update: an
    all-day edit without a date, or an open-ended boundary with no draft
    fields. The result is always exactly one marker shape.
    """
    draft_date = present(draft_date)
    draft_time = present(draft_time)

    if all_day:
        if draft_date is None:
            return None
        return AllDayDate(parse_date(draft_date))

    zone = tz or local_timezone()
    if existing is None:
        if draft_date is None and draft_time is None:
            return None
        if draft_date is None or draft_time is None:
            raise MalformedTemporalInput("both date and time are required for a new boundary")
        effective_date = parse_date(draft_date)
        effective_time = parse_time(draft_time)
    else:
        base_date, base_time = _local_parts(existing, zone)
        effective_date = parse_date(draft_date) if draft_date is not None else base_date
        effective_time = parse_time(draft_time) if draft_time is not None else base_time

    composed = dt.datetime.combine(effective_date, effective_time, tzinfo=zone)
    return TimedInstant(composed.astimezone(dt.timezone.utc))
