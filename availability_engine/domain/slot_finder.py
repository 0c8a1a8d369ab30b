"""
Core business logic for finding bookable slots.

This is the heart of the engine - pure domain logic without any external
dependencies (no API calls, no database, no I/O).
"""

import logging
from datetime import datetime
from itertools import chain, islice
from typing import Iterator, List, Optional, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .business_hours import is_open
from .exceptions import InputOutOfRange, InvalidInterval
from .interval_math import expand, overlaps
from .models import AvailableSlot, BusinessHoursSpec, BusyInterval, SlotCheck, TimeInterval
from .timezones import TimeZoneRegistry, TimezoneLike

logger = logging.getLogger(__name__)

DEFAULT_HORIZON_DAYS = 30
DEFAULT_SUGGESTION_LIMIT = 5

# Pairs of (buffer-expanded interval, interval as supplied by the caller)
_PreparedBusy = List[Tuple[TimeInterval, TimeInterval]]


def _to_utc(value: datetime) -> DateTime:
    return pendulum.instance(value).in_timezone("UTC")


def _validate_minutes(name: str, value: int, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InputOutOfRange(f"{name} must be an integer >= {minimum}, got {value!r}")


class SlotFinder:
    """
    Enumerates free slots of a requested length inside a search window.

    Algorithm:
    1. Expand every busy interval by the buffer (full buffer on each side)
    2. Sort the expanded intervals by start
    3. Walk a cursor from the window start proposing back-to-back candidates
       of exactly the requested duration
    4. Reject candidates that overlap a busy interval or that start or end
       outside business hours; accept the rest
    5. Stop once the next candidate would pass the window end

    Slots are never subdivided at a business-hours boundary: a candidate is
    open or rejected as a whole, judged by its start and the instant just
    before its end.
    """

    def __init__(self, registry: Optional[TimeZoneRegistry] = None):
        self.registry = registry or TimeZoneRegistry()

    def find_available_slots(
        self,
        window_start: datetime,
        window_end: datetime,
        duration_minutes: int,
        busy_intervals: Sequence[TimeInterval] = (),
        business_hours: Optional[BusinessHoursSpec] = None,
        tz: TimezoneLike = "UTC",
        buffer_minutes: int = 0,
    ) -> List[AvailableSlot]:
        """
        Find all slots of ``duration_minutes`` inside ``[window_start, window_end)``.

        Args:
            window_start: Start of the search window
            window_end: End of the search window
            duration_minutes: Required slot length
            busy_intervals: Caller-owned busy snapshot, not modified
            business_hours: Opening hours, or None for no restriction
            tz: Zone the business hours are expressed in
            buffer_minutes: Idle time to keep around every busy interval

        Returns:
            Pairwise non-overlapping slots in chronological order

        Raises:
            InvalidInterval: If the window does not end after it starts
            InputOutOfRange: For a non-positive duration or negative buffer
            InvalidTimeZone: If ``tz`` does not resolve
        """
        window = self._window(window_start, window_end)
        _validate_minutes("duration_minutes", duration_minutes, 1)
        zone = self.registry.resolve(tz)
        prepared = self._prepare_busy(busy_intervals, buffer_minutes)

        slots = list(self._iter_slots(window, duration_minutes, prepared, business_hours, zone))

        logger.debug(
            "Found %d slot(s) of %d min in %s against %d busy interval(s)",
            len(slots), duration_minutes, window, len(prepared),
        )
        return slots

    def get_next_available_slot(
        self,
        from_instant: datetime,
        duration_minutes: int,
        busy_intervals: Sequence[TimeInterval] = (),
        tz: TimezoneLike = "UTC",
        business_hours: Optional[BusinessHoursSpec] = None,
        buffer_minutes: int = 0,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
    ) -> Optional[AvailableSlot]:
        """
        Return the earliest slot at or after ``from_instant``.

        Day-sized windows are scanned forward up to ``horizon_days``;
        ``None`` means nothing fits within the horizon. Each window restarts
        at its own start, so a slot straddling two windows is only found
        from the second window onwards.
        """
        _validate_minutes("duration_minutes", duration_minutes, 1)
        _validate_minutes("horizon_days", horizon_days, 1)
        zone = self.registry.resolve(tz)
        prepared = self._prepare_busy(busy_intervals, buffer_minutes)

        found = next(
            self._iter_horizon(
                _to_utc(from_instant), horizon_days, duration_minutes, prepared, business_hours, zone
            ),
            None,
        )

        if found is None:
            logger.debug(
                "No %d min slot within %d day(s) of %s", duration_minutes, horizon_days, from_instant
            )
        return found

    def check_slot(
        self,
        proposed: TimeInterval,
        busy_intervals: Sequence[TimeInterval] = (),
        business_hours: Optional[BusinessHoursSpec] = None,
        tz: TimezoneLike = "UTC",
        buffer_minutes: int = 0,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
        horizon_days: int = DEFAULT_HORIZON_DAYS,
    ) -> SlotCheck:
        """
        Check a single proposed window and suggest alternatives if it is taken.

        Conflicts are reported as the caller's original busy intervals; a
        busy interval conflicts when its buffer-expanded form overlaps the
        proposed window. Suggestions have the proposed duration and start
        at or after the proposed start.
        """
        _validate_minutes("suggestion_limit", suggestion_limit, 0)
        _validate_minutes("horizon_days", horizon_days, 1)
        proposal = self._window(proposed.start, proposed.end)
        zone = self.registry.resolve(tz)
        prepared = self._prepare_busy(busy_intervals, buffer_minutes)

        conflicts = tuple(
            original for expanded, original in prepared if overlaps(proposal, expanded)
        )

        if conflicts:
            reason = "Time slot conflicts with existing busy intervals"
        elif not self._within_business_hours(proposal, business_hours, zone):
            reason = "Time slot is outside business hours"
        else:
            return SlotCheck(available=True)

        duration = int((proposal.end - proposal.start).total_seconds() // 60)
        suggestions: Tuple[AvailableSlot, ...] = ()
        if duration >= 1 and suggestion_limit > 0:
            suggestions = tuple(
                islice(
                    self._iter_horizon(
                        proposal.start, horizon_days, duration, prepared, business_hours, zone
                    ),
                    suggestion_limit,
                )
            )

        return SlotCheck(
            available=False,
            reason=reason,
            conflicts=conflicts,
            suggestions=suggestions,
        )

    @staticmethod
    def _window(start: datetime, end: datetime) -> TimeInterval:
        start_utc = _to_utc(start)
        end_utc = _to_utc(end)
        if end_utc <= start_utc:
            raise InvalidInterval(f"Window end {end} must be after window start {start}")
        return TimeInterval(start=start_utc, end=end_utc)

    @staticmethod
    def _prepare_busy(busy_intervals: Sequence[TimeInterval], buffer_minutes: int) -> _PreparedBusy:
        """
        Expand busy intervals by the buffer and sort them by start.

        Overlapping busy intervals are not merged; every candidate is checked
        against all of them.
        """
        _validate_minutes("buffer_minutes", buffer_minutes, 0)

        prepared = [
            (expand(TimeInterval(start=_to_utc(busy.start), end=_to_utc(busy.end)), buffer_minutes), busy)
            for busy in busy_intervals
        ]
        prepared.sort(key=lambda pair: pair[0].start)
        return prepared

    @staticmethod
    def _within_business_hours(candidate: TimeInterval, business_hours, zone) -> bool:
        if business_hours is None:
            return True
        last_instant = pendulum.instance(candidate.end).subtract(microseconds=1)
        return is_open(candidate.start, business_hours, zone) and is_open(
            last_instant, business_hours, zone
        )

    def _iter_slots(
        self,
        window: TimeInterval,
        duration_minutes: int,
        prepared: _PreparedBusy,
        business_hours: Optional[BusinessHoursSpec],
        zone,
    ) -> Iterator[AvailableSlot]:
        cursor = pendulum.instance(window.start)

        while cursor < window.end:
            candidate_end = cursor.add(minutes=duration_minutes)
            if candidate_end > window.end:
                break

            candidate = TimeInterval(start=cursor, end=candidate_end)

            blocking_end = None
            for expanded, _ in prepared:
                if expanded.start >= candidate.end:
                    # Sorted by start: nothing later can overlap
                    break
                if overlaps(candidate, expanded):
                    if blocking_end is None or expanded.end > blocking_end:
                        blocking_end = expanded.end

            if blocking_end is None and self._within_business_hours(candidate, business_hours, zone):
                yield AvailableSlot(time_range=candidate, duration_minutes=duration_minutes)
                cursor = candidate_end
                continue

            step = cursor.add(minutes=1)
            if blocking_end is not None and blocking_end > step:
                step = pendulum.instance(blocking_end)
            cursor = step

    def _iter_horizon(
        self,
        start: DateTime,
        horizon_days: int,
        duration_minutes: int,
        prepared: _PreparedBusy,
        business_hours: Optional[BusinessHoursSpec],
        zone,
    ) -> Iterator[AvailableSlot]:
        windows = (
            TimeInterval(start=start.add(days=day), end=start.add(days=day + 1))
            for day in range(horizon_days)
        )
        return chain.from_iterable(
            self._iter_slots(window, duration_minutes, prepared, business_hours, zone)
            for window in windows
        )
