"""
Pure interval algebra over half-open ``[start, end)`` intervals.

Touching intervals (``a.end == b.start``) do not overlap, so slots can be
placed back-to-back.
"""

from typing import Iterable, List

import pendulum

from .exceptions import InputOutOfRange, InvalidInterval
from .models import TimeInterval


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """Check if two intervals share any instant."""
    return a.start < b.end and b.start < a.end


def duration_minutes(interval: TimeInterval) -> int:
    """
    Return the whole minutes between start and end, rounded down.

    Raises:
        InvalidInterval: If the interval does not end after it starts
    """
    if interval.end <= interval.start:
        raise InvalidInterval(
            f"Start time {interval.start} must be before end time {interval.end}"
        )
    return int((interval.end - interval.start).total_seconds() // 60)


def expand(interval: TimeInterval, buffer_minutes: int) -> TimeInterval:
    """
    Widen an interval by the full buffer on both sides.

    Two busy intervals expanded this way keep at least ``buffer_minutes``
    free between a slot and either of them.
    """
    if buffer_minutes < 0:
        raise InputOutOfRange(f"buffer_minutes must not be negative, got {buffer_minutes}")
    if buffer_minutes == 0:
        return TimeInterval(start=interval.start, end=interval.end)

    return TimeInterval(
        start=pendulum.instance(interval.start).subtract(minutes=buffer_minutes),
        end=pendulum.instance(interval.end).add(minutes=buffer_minutes),
    )


def merge(intervals: Iterable[TimeInterval]) -> List[TimeInterval]:
    """
    Merge overlapping or touching intervals.

    Example: [09:00-10:00, 10:00-11:00, 10:30-12:00] -> [09:00-12:00]
    """
    sorted_intervals = sorted(intervals, key=lambda i: i.start)
    if not sorted_intervals:
        return []

    first = sorted_intervals[0]
    merged: List[TimeInterval] = [TimeInterval(start=first.start, end=first.end)]

    for current in sorted_intervals[1:]:
        last = merged[-1]

        if current.start <= last.end:
            merged[-1] = TimeInterval(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(TimeInterval(start=current.start, end=current.end))

    return merged
