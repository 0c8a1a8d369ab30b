"""
Domain-specific exception hierarchy for the availability engine.

Every error is a caller-input error: callers map them to request-validation
responses. ``code`` is stable and safe to expose over the wire.
"""


class SchedulingError(Exception):
    """Base class for all engine errors."""

    code = "SCHEDULING_ERROR"


class InvalidTimeZone(SchedulingError, ValueError):
    """Raised when a timezone identifier does not resolve."""

    code = "INVALID_TIMEZONE"


class InvalidInterval(SchedulingError, ValueError):
    """Raised when an interval does not end after it starts."""

    code = "INVALID_INTERVAL"


class UnsupportedRecurrenceType(SchedulingError, ValueError):
    """Raised for recurrence types other than daily, weekly and monthly."""

    code = "UNSUPPORTED_RECURRENCE"


class AmbiguousLocalTime(SchedulingError, ValueError):
    """Raised when a local wall-clock time is repeated or skipped by a DST change."""

    code = "AMBIGUOUS_LOCAL_TIME"


class InputOutOfRange(SchedulingError, ValueError):
    """Raised when a numeric or structural input is outside its allowed range."""

    code = "INPUT_OUT_OF_RANGE"
