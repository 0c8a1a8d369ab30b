"""
Public scheduling API used by booking and calendar callers.

The facade coerces boundary shapes (ISO 8601 strings, plain mappings) into
domain types, fills in configured defaults and delegates to the pure domain
functions and the ``SlotFinder``. Its only state is the timezone registry,
so one instance can be constructed per process and shared across threads.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from pendulum import Date, DateTime
from pydantic import ValidationError

from ..config import BusinessHoursConfig, EngineConfig
from ..domain.business_hours import business_days, is_open
from ..domain.exceptions import InputOutOfRange
from ..domain.interval_math import duration_minutes, merge, overlaps
from ..domain.models import (
    AvailableSlot,
    BusinessHoursSpec,
    BusyInterval,
    RecurrenceRule,
    SlotCheck,
    TimeInterval,
)
from ..domain.recurrence import expand_recurrence
from ..domain.slot_finder import SlotFinder
from ..domain.timezones import TimeZoneRegistry
from ..marshalling import (
    InstantLike,
    busy_interval_from_mapping,
    interval_from_mapping,
    parse_instant,
)

logger = logging.getLogger(__name__)

IntervalLike = Union[TimeInterval, Mapping[str, Any]]
BusinessHoursLike = Union[BusinessHoursSpec, BusinessHoursConfig, Mapping[Any, Any]]


class SchedulingFacade:
    """
    Stateless scheduling engine.

    Construct once, inject wherever booking or calendar code needs it. Each
    instance owns its own timezone validity cache, so independent instances
    never share state.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        registry: Optional[TimeZoneRegistry] = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._registry = registry or TimeZoneRegistry()
        self._slot_finder = SlotFinder(registry=self._registry)
        self._default_business_hours = self._config.business_hours.to_spec()

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def registry(self) -> TimeZoneRegistry:
        return self._registry

    # Timezones

    def validate_time_zone(self, tz: str) -> bool:
        """Check whether an IANA identifier resolves."""
        return self._registry.is_valid_time_zone(tz)

    def convert_time_zone(self, value: InstantLike, source_tz: str, target_tz: str) -> DateTime:
        """Anchor ``value`` in ``source_tz`` if it is wall-clock, then express it in ``target_tz``."""
        return self._registry.convert(value, source_tz, target_tz)

    def localize(self, instant: InstantLike, tz: str) -> DateTime:
        """Wall-clock representation of an instant in ``tz``."""
        return self._registry.localize(parse_instant(instant), tz)

    def combine(self, local_date: date, local_time: time, tz: str) -> DateTime:
        """Compose a local date and time of day in ``tz`` into an instant."""
        return self._registry.combine(local_date, local_time, tz)

    def time_zone_offset(self, tz: str, at: Optional[InstantLike] = None) -> int:
        """UTC offset of ``tz`` in minutes at ``at`` (default: now)."""
        return self._registry.offset_minutes(tz, None if at is None else parse_instant(at))

    # Interval math

    def overlaps(self, a: IntervalLike, b: IntervalLike) -> bool:
        """Half-open overlap test; touching intervals do not overlap."""
        return overlaps(interval_from_mapping(a), interval_from_mapping(b))

    def duration_minutes(self, interval: IntervalLike) -> int:
        """Whole minutes covered by an interval."""
        return duration_minutes(interval_from_mapping(interval))

    # Availability

    def find_available_slots(
        self,
        *,
        window_start: InstantLike,
        window_end: InstantLike,
        duration_minutes: int,
        busy_intervals: Iterable[IntervalLike] = (),
        business_hours: Optional[BusinessHoursLike] = None,
        tz: Optional[str] = None,
        buffer_minutes: Optional[int] = None,
    ) -> List[AvailableSlot]:
        """
        Enumerate back-to-back free slots of ``duration_minutes`` in the window.

        Omitted business hours, timezone and buffer fall back to the
        configured defaults.
        """
        return self._slot_finder.find_available_slots(
            window_start=parse_instant(window_start),
            window_end=parse_instant(window_end),
            duration_minutes=duration_minutes,
            busy_intervals=self._coerce_busy(busy_intervals),
            business_hours=self._coerce_business_hours(business_hours),
            tz=self._timezone(tz),
            buffer_minutes=self._buffer(buffer_minutes),
        )

    def get_next_available_slot(
        self,
        *,
        from_instant: InstantLike,
        duration_minutes: int,
        busy_intervals: Iterable[IntervalLike] = (),
        tz: Optional[str] = None,
        business_hours: Optional[BusinessHoursLike] = None,
        buffer_minutes: Optional[int] = None,
    ) -> Optional[AvailableSlot]:
        """Earliest slot within the configured horizon, or None if nothing fits."""
        return self._slot_finder.get_next_available_slot(
            from_instant=parse_instant(from_instant),
            duration_minutes=duration_minutes,
            busy_intervals=self._coerce_busy(busy_intervals),
            tz=self._timezone(tz),
            business_hours=self._coerce_business_hours(business_hours),
            buffer_minutes=self._buffer(buffer_minutes),
            horizon_days=self._config.horizon_days,
        )

    def check_slot_availability(
        self,
        *,
        start: InstantLike,
        end: InstantLike,
        busy_intervals: Iterable[IntervalLike] = (),
        business_hours: Optional[BusinessHoursLike] = None,
        tz: Optional[str] = None,
        buffer_minutes: Optional[int] = None,
    ) -> SlotCheck:
        """
        Re-validate a proposed booking window against a fresh busy snapshot.

        When the window is taken, up to ``suggestion_limit`` alternatives of
        the same length are suggested.
        """
        proposed = TimeInterval(start=parse_instant(start), end=parse_instant(end))

        return self._slot_finder.check_slot(
            proposed,
            busy_intervals=self._coerce_busy(busy_intervals),
            business_hours=self._coerce_business_hours(business_hours),
            tz=self._timezone(tz),
            buffer_minutes=self._buffer(buffer_minutes),
            suggestion_limit=self._config.suggestion_limit,
            horizon_days=self._config.horizon_days,
        )

    def find_common_slots(
        self,
        *,
        busy_by_participant: Mapping[str, Iterable[IntervalLike]],
        window_start: InstantLike,
        window_end: InstantLike,
        duration_minutes: int,
        participants: Optional[Sequence[str]] = None,
        business_hours: Optional[BusinessHoursLike] = None,
        tz: Optional[str] = None,
        buffer_minutes: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[AvailableSlot]:
        """
        Find slots where every participant is free.

        All participants' busy intervals are combined into one snapshot
        before searching. ``participants`` may name people absent from the
        mapping; they are treated as having no busy time.
        """
        if limit is not None and limit < 0:
            raise InputOutOfRange(f"limit must not be negative, got {limit}")

        normalized = self._ensure_busy_entries(participants or (), busy_by_participant)
        combined = merge(
            busy
            for ranges in normalized.values()
            for busy in self._coerce_busy(ranges)
        )

        slots = self.find_available_slots(
            window_start=window_start,
            window_end=window_end,
            duration_minutes=duration_minutes,
            busy_intervals=combined,
            business_hours=business_hours,
            tz=tz,
            buffer_minutes=buffer_minutes,
        )

        logger.debug(
            "Common slots for %d participant(s): %d found", len(normalized), len(slots)
        )
        return slots if limit is None else slots[:limit]

    # Business hours

    def is_within_business_hours(
        self,
        instant: InstantLike,
        business_hours: Optional[BusinessHoursLike] = None,
        tz: Optional[str] = None,
    ) -> bool:
        """Check whether an instant falls inside open hours in ``tz``."""
        zone = self._registry.resolve(self._timezone(tz))
        return is_open(parse_instant(instant), self._coerce_business_hours(business_hours), zone)

    def business_days(
        self,
        start_date: date,
        end_date: date,
        exclude_weekdays: Iterable[int] = (0, 6),
    ) -> List[Date]:
        """Dates in the inclusive range not falling on an excluded weekday."""
        return business_days(start_date, end_date, exclude_weekdays)

    # Recurrence

    def generate_recurring_occurrences(
        self,
        pattern: Union[RecurrenceRule, Mapping[str, Any]],
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Date]:
        """
        Expand a recurrence pattern into concrete dates within ``[start_date, end_date]``.

        ``pattern`` is either a RecurrenceRule (whose own bounds apply unless
        overridden) or a mapping such as ``{"type": "weekly", "interval": 2,
        "daysOfWeek": [1, 3]}``.
        """
        if isinstance(pattern, RecurrenceRule):
            rule = pattern
            if start_date is not None or end_date is not None:
                rule = RecurrenceRule(
                    type=pattern.type,
                    bound_start=start_date or pattern.bound_start,
                    bound_end=end_date or pattern.bound_end,
                    interval=pattern.interval,
                    days_of_week=pattern.days_of_week,
                    day_of_month=pattern.day_of_month,
                )
        else:
            if start_date is None or end_date is None:
                raise InputOutOfRange("start_date and end_date are required for a pattern mapping")
            rule = RecurrenceRule.from_pattern(pattern, start_date, end_date)

        return expand_recurrence(rule)

    # Coercion helpers

    def _timezone(self, tz: Optional[str]) -> str:
        return self._config.default_timezone if tz is None else tz

    def _buffer(self, buffer_minutes: Optional[int]) -> int:
        return self._config.buffer_minutes if buffer_minutes is None else buffer_minutes

    def _coerce_business_hours(self, value: Optional[BusinessHoursLike]) -> BusinessHoursSpec:
        if value is None:
            return self._default_business_hours
        if isinstance(value, BusinessHoursSpec):
            return value
        if isinstance(value, BusinessHoursConfig):
            return value.to_spec()
        if not isinstance(value, Mapping):
            raise InputOutOfRange(f"Business hours must be a mapping, got {value!r}")

        try:
            return BusinessHoursConfig.from_mapping(value).to_spec()
        except ValidationError as exc:
            raise InputOutOfRange(f"Invalid business hours: {exc}") from exc

    @staticmethod
    def _coerce_busy(busy_intervals: Iterable[IntervalLike]) -> List[BusyInterval]:
        # Copied into a fresh list; the caller's sequence is never retained.
        return [busy_interval_from_mapping(busy) for busy in busy_intervals]

    @staticmethod
    def _ensure_busy_entries(
        participants: Sequence[str],
        busy_by_participant: Mapping[str, Iterable[IntervalLike]],
    ) -> Dict[str, Iterable[IntervalLike]]:
        """
        Ensure every requested participant appears in the busy-time map.

        Callers may omit people with no commitments; we normalise that to an
        explicit empty entry for deterministic downstream behaviour.
        """
        normalized: Dict[str, Iterable[IntervalLike]] = {}

        for participant in participants:
            normalized[participant] = busy_by_participant.get(participant, ())

        for participant, ranges in busy_by_participant.items():
            if participant not in normalized:
                normalized[participant] = ranges

        return normalized
