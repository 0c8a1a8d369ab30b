"""
Availability and scheduling engine: bookable slots, recurrence expansion and
timezone-correct conversions.
"""

__version__ = "0.1.0"

from .config import EngineConfig
from .domain.exceptions import (
    AmbiguousLocalTime,
    InputOutOfRange,
    InvalidInterval,
    InvalidTimeZone,
    SchedulingError,
    UnsupportedRecurrenceType,
)
from .domain.models import (
    AvailableSlot,
    BusinessHoursSpec,
    BusyInterval,
    DayHours,
    RecurrenceRule,
    SlotCheck,
    TimeInterval,
)
from .services.scheduling import SchedulingFacade

__all__ = [
    "AmbiguousLocalTime",
    "AvailableSlot",
    "BusinessHoursSpec",
    "BusyInterval",
    "DayHours",
    "EngineConfig",
    "InputOutOfRange",
    "InvalidInterval",
    "InvalidTimeZone",
    "RecurrenceRule",
    "SchedulingError",
    "SchedulingFacade",
    "SlotCheck",
    "TimeInterval",
    "UnsupportedRecurrenceType",
    "__version__",
]
