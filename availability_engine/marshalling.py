"""
Conversion between the engine's domain types and the primitive shapes used
at the HTTP boundary: ISO 8601 instants and plain mappings.
"""

from datetime import datetime
from typing import Any, Dict, Mapping, Union

import pendulum
from pendulum import DateTime

from .domain.exceptions import InputOutOfRange
from .domain.models import AvailableSlot, BusyInterval, TimeInterval
from .domain.timezones import parse_iso8601

InstantLike = Union[datetime, str]


def parse_instant(value: InstantLike) -> DateTime:
    """
    Parse an instant from an ISO 8601 string or datetime, normalised to UTC.

    Values without an offset are read as UTC.

    Raises:
        InputOutOfRange: If the value is not a datetime or ISO 8601 string
    """
    if isinstance(value, str):
        value = parse_iso8601(value)
    elif not isinstance(value, datetime):
        raise InputOutOfRange(f"Expected an ISO 8601 instant, got {value!r}")

    return pendulum.instance(value).in_timezone("UTC")


def format_instant(value: datetime) -> str:
    """Render an instant as an ISO 8601 string in UTC."""
    return pendulum.instance(value).in_timezone("UTC").to_iso8601_string()


def interval_from_mapping(data: Union[TimeInterval, Mapping[str, Any]]) -> TimeInterval:
    """
    Build a TimeInterval from ``{"start": ..., "end": ...}``.

    Raises:
        InputOutOfRange: If a bound is missing or unparsable
        InvalidInterval: If the interval does not end after it starts
    """
    if isinstance(data, TimeInterval):
        return data

    try:
        start, end = data["start"], data["end"]
    except (KeyError, TypeError) as exc:
        raise InputOutOfRange(f"Interval needs 'start' and 'end', got {data!r}") from exc

    return TimeInterval(start=parse_instant(start), end=parse_instant(end))


def busy_interval_from_mapping(data: Union[TimeInterval, Mapping[str, Any]]) -> BusyInterval:
    """
    Build a BusyInterval from ``{"start", "end", "source_id" | "id"}``.

    Plain TimeIntervals are wrapped without a source id.
    """
    if isinstance(data, BusyInterval):
        return data
    if isinstance(data, TimeInterval):
        return BusyInterval(start=data.start, end=data.end)

    interval = interval_from_mapping(data)
    source_id = data.get("source_id", data.get("sourceId", data.get("id")))

    return BusyInterval(
        start=interval.start,
        end=interval.end,
        source_id=None if source_id is None else str(source_id),
    )


def slot_to_dict(slot: AvailableSlot) -> Dict[str, Any]:
    """Serialise a slot for a JSON response."""
    return {
        "start": format_instant(slot.start),
        "end": format_instant(slot.end),
        "duration_minutes": slot.duration_minutes,
    }
