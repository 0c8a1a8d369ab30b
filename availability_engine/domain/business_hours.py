"""
Business-hours evaluation in a provider's local timezone.
"""

from datetime import date, datetime
from typing import Iterable, List

import pendulum
from pendulum import Date

from .models import BusinessHoursSpec, weekday_number
from .timezones import TimezoneLike, resolve_timezone


def is_open(instant: datetime, spec: BusinessHoursSpec, tz: TimezoneLike) -> bool:
    """
    Check whether an instant falls inside the configured open hours.

    The instant is localized to ``tz`` and matched against the entry for its
    local weekday (or the default entry). Open hours include ``open`` and
    exclude ``close``.

    Raises:
        InvalidTimeZone: If ``tz`` does not resolve
    """
    zone = resolve_timezone(tz)
    local = pendulum.instance(instant).in_timezone(zone)

    hours = spec.for_weekday(weekday_number(local))
    if hours is None:
        return False

    return hours.contains(local.time())


def business_days(
    start_date: date,
    end_date: date,
    exclude_weekdays: Iterable[int] = (0, 6),
) -> List[Date]:
    """
    List the dates in ``[start_date, end_date]`` not falling on an excluded weekday.

    Weekdays use 0=Sunday ... 6=Saturday, so the default skips weekends.
    """
    excluded = set(exclude_weekdays)
    days: List[Date] = []

    current = pendulum.date(start_date.year, start_date.month, start_date.day)
    last = pendulum.date(end_date.year, end_date.month, end_date.day)

    while current <= last:
        if weekday_number(current) not in excluded:
            days.append(current)
        current = current.add(days=1)

    return days
