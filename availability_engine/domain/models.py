"""
Domain models for intervals, slots, recurrence rules and business hours.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, FrozenSet, Mapping, Optional, Tuple

from pendulum import DateTime

from .exceptions import InputOutOfRange, InvalidInterval

SUNDAY = 0
SATURDAY = 6

RECURRENCE_TYPES = ("daily", "weekly", "monthly")


def weekday_number(value: date) -> int:
    """Return the weekday of a date or datetime, 0=Sunday ... 6=Saturday."""
    return value.isoweekday() % 7


def _validate_weekday(day: Any) -> int:
    if isinstance(day, bool) or not isinstance(day, int) or not SUNDAY <= day <= SATURDAY:
        raise InputOutOfRange(f"Weekday must be an integer between 0 and 6, got {day!r}")
    return day


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable half-open interval ``[start, end)`` between two instants.

    Invariant: start must be before end. Both ends must be timezone-aware.
    """
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InputOutOfRange(
                f"Interval bounds must be timezone-aware, got {self.start!r} and {self.end!r}"
            )
        if self.start >= self.end:
            raise InvalidInterval(f"Start time {self.start} must be before end time {self.end}")

    def __str__(self) -> str:
        return f"{self.start.isoformat()} - {self.end.isoformat()}"


@dataclass(frozen=True)
class BusyInterval(TimeInterval):
    """A caller-supplied busy interval tagged with an opaque source id."""
    source_id: Optional[str] = None


@dataclass(frozen=True)
class AvailableSlot:
    """
    Represents a found available slot.
    """
    time_range: TimeInterval
    duration_minutes: int

    @property
    def start(self) -> datetime:
        return self.time_range.start

    @property
    def end(self) -> datetime:
        return self.time_range.end

    def format_display(self, timezone: Optional[str] = None) -> str:
        """
        Format the slot for display, optionally in another timezone.
        Format: Weekday, YYYY-MM-DD | HH:mm – HH:mm (N min)
        """
        start = self.start
        end = self.end
        if timezone is not None and isinstance(start, DateTime):
            start = start.in_timezone(timezone)
            end = end.in_timezone(timezone)

        return (
            f"{start.strftime('%A, %Y-%m-%d')} | "
            f"{start.strftime('%H:%M')} – {end.strftime('%H:%M')} "
            f"({self.duration_minutes} min)"
        )


@dataclass(frozen=True)
class SlotCheck:
    """Outcome of checking a single proposed booking window."""
    available: bool
    reason: Optional[str] = None
    conflicts: Tuple[BusyInterval, ...] = ()
    suggestions: Tuple[AvailableSlot, ...] = ()


@dataclass(frozen=True)
class RecurrenceRule:
    """
    A recurrence pattern bounded by an inclusive date range.

    ``days_of_week`` applies to weekly rules and ``day_of_month`` to monthly
    rules. The rule type itself is checked when the rule is expanded.
    """
    type: str
    bound_start: date
    bound_end: date
    interval: int = 1
    days_of_week: Optional[FrozenSet[int]] = None
    day_of_month: Optional[int] = None

    def __post_init__(self):
        # Datetimes are accepted as bounds but only their calendar date counts.
        for name in ("bound_start", "bound_end"):
            value = getattr(self, name)
            if isinstance(value, datetime):
                object.__setattr__(self, name, value.date())
            elif not isinstance(value, date):
                raise InputOutOfRange(f"{name} must be a date, got {value!r}")

        if isinstance(self.interval, bool) or not isinstance(self.interval, int) or self.interval < 1:
            raise InputOutOfRange(f"interval must be a positive integer, got {self.interval!r}")

        if self.days_of_week is not None:
            object.__setattr__(
                self,
                "days_of_week",
                frozenset(_validate_weekday(day) for day in self.days_of_week),
            )

        if self.day_of_month is not None:
            day = self.day_of_month
            if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
                raise InputOutOfRange(f"day_of_month must be between 1 and 31, got {day!r}")

    @classmethod
    def from_pattern(
        cls,
        pattern: Mapping[str, Any],
        bound_start: date,
        bound_end: date,
    ) -> "RecurrenceRule":
        """
        Build a rule from a caller pattern mapping.

        Both camelCase (``daysOfWeek``, ``dayOfMonth``) and snake_case keys
        are understood; ``interval`` defaults to 1.
        """
        if "type" not in pattern:
            raise InputOutOfRange("Recurrence pattern is missing 'type'")

        days_of_week = pattern.get("daysOfWeek", pattern.get("days_of_week"))
        day_of_month = pattern.get("dayOfMonth", pattern.get("day_of_month"))
        interval = pattern.get("interval")

        return cls(
            type=pattern["type"],
            bound_start=bound_start,
            bound_end=bound_end,
            interval=1 if interval is None else interval,
            days_of_week=None if days_of_week is None else frozenset(days_of_week),
            day_of_month=day_of_month,
        )


@dataclass(frozen=True)
class DayHours:
    """
    Opening hours for one weekday: ``[open, close)`` in local time, or closed.
    """
    open: Optional[time] = None
    close: Optional[time] = None
    closed: bool = False

    def __post_init__(self):
        if self.closed:
            return
        if self.open is None or self.close is None:
            raise InputOutOfRange("Open days need both an open and a close time")
        if self.open.tzinfo is not None or self.close.tzinfo is not None:
            raise InputOutOfRange(
                f"Open hours are local times of day and must not carry an offset, got {self.open} and {self.close}"
            )
        if self.close <= self.open:
            raise InputOutOfRange(f"Close time {self.close} must be after open time {self.open}")

    @classmethod
    def closed_day(cls) -> "DayHours":
        return cls(closed=True)

    def contains(self, time_of_day: time) -> bool:
        """Check whether a local time of day falls inside the open hours."""
        if self.closed:
            return False
        return self.open <= time_of_day < self.close


@dataclass(frozen=True)
class BusinessHoursSpec:
    """
    Mapping from weekday (0=Sunday ... 6=Saturday) to opening hours.

    ``default`` applies to any weekday not listed; a weekday with neither an
    entry nor a default is closed.
    """
    days: Mapping[int, DayHours] = field(default_factory=dict)
    default: Optional[DayHours] = None

    def __post_init__(self):
        for day in self.days:
            _validate_weekday(day)
        object.__setattr__(self, "days", dict(self.days))

    def for_weekday(self, weekday: int) -> Optional[DayHours]:
        """Return the hours for a weekday, falling back to the default entry."""
        return self.days.get(weekday, self.default)
