"""
Domain layer - Pure scheduling logic without I/O.
"""

from .business_hours import business_days, is_open
from .exceptions import (
    AmbiguousLocalTime,
    InputOutOfRange,
    InvalidInterval,
    InvalidTimeZone,
    SchedulingError,
    UnsupportedRecurrenceType,
)
from .interval_math import duration_minutes, expand, merge, overlaps
from .models import (
    AvailableSlot,
    BusinessHoursSpec,
    BusyInterval,
    DayHours,
    RecurrenceRule,
    SlotCheck,
    TimeInterval,
    weekday_number,
)
from .recurrence import expand_recurrence
from .slot_finder import SlotFinder
from .timezones import TimeZoneRegistry

__all__ = [
    "AmbiguousLocalTime",
    "AvailableSlot",
    "BusinessHoursSpec",
    "BusyInterval",
    "DayHours",
    "InputOutOfRange",
    "InvalidInterval",
    "InvalidTimeZone",
    "RecurrenceRule",
    "SchedulingError",
    "SlotCheck",
    "SlotFinder",
    "TimeInterval",
    "TimeZoneRegistry",
    "UnsupportedRecurrenceType",
    "business_days",
    "duration_minutes",
    "expand",
    "expand_recurrence",
    "is_open",
    "merge",
    "overlaps",
    "weekday_number",
]
