"""
Expansion of recurrence rules into concrete occurrence dates.

Weekdays are numbered 0=Sunday ... 6=Saturday and weeks start on Sunday.
"""

import logging
from typing import List

import pendulum
from pendulum import Date

from .exceptions import InputOutOfRange, UnsupportedRecurrenceType
from .models import RecurrenceRule, weekday_number

logger = logging.getLogger(__name__)


def expand_recurrence(rule: RecurrenceRule) -> List[Date]:
    """
    Expand a rule into its ordered occurrence dates, both bounds inclusive.

    Args:
        rule: The recurrence rule, including its own bounds

    Returns:
        Sorted list of distinct dates

    Raises:
        UnsupportedRecurrenceType: For types other than daily, weekly, monthly
        InputOutOfRange: For inverted bounds or a missing weekly/monthly anchor
    """
    expanders = {
        "daily": _expand_daily,
        "weekly": _expand_weekly,
        "monthly": _expand_monthly,
    }
    expander = expanders.get(rule.type)
    if expander is None:
        raise UnsupportedRecurrenceType(f"Unsupported recurrence type: {rule.type!r}")

    start = _to_date(rule.bound_start)
    end = _to_date(rule.bound_end)
    if end < start:
        raise InputOutOfRange(f"Recurrence bound end {end} is before bound start {start}")

    occurrences = expander(rule, start, end)
    logger.debug(
        "Expanded %s rule (interval=%d) over %s..%s into %d occurrences",
        rule.type, rule.interval, start, end, len(occurrences),
    )
    return occurrences


def _to_date(value) -> Date:
    return pendulum.date(value.year, value.month, value.day)


def _expand_daily(rule: RecurrenceRule, start: Date, end: Date) -> List[Date]:
    dates: List[Date] = []
    current = start

    while current <= end:
        dates.append(current)
        current = current.add(days=rule.interval)

    return dates


def _week_start(value: Date) -> Date:
    return value.subtract(days=weekday_number(value))


def _expand_weekly(rule: RecurrenceRule, start: Date, end: Date) -> List[Date]:
    """
    Every ``interval``-th week on the listed weekdays.

    Weeks are counted from the week containing the bound start, so with
    interval=2 the first, third, fifth... weeks qualify.
    """
    if not rule.days_of_week:
        raise InputOutOfRange("Weekly recurrence needs at least one day of week")

    anchor_week = _week_start(start)
    dates: List[Date] = []
    current = start

    while current <= end:
        if weekday_number(current) in rule.days_of_week:
            weeks_apart = (_week_start(current).toordinal() - anchor_week.toordinal()) // 7
            if weeks_apart % rule.interval == 0:
                dates.append(current)
        current = current.add(days=1)

    return dates


def _expand_monthly(rule: RecurrenceRule, start: Date, end: Date) -> List[Date]:
    """
    Every ``interval``-th month on ``day_of_month``.

    Months that are too short for the day are skipped rather than clamped
    to their last day.
    """
    if rule.day_of_month is None:
        raise InputOutOfRange("Monthly recurrence needs a day of month")

    first_of_month = start.start_of("month")
    dates: List[Date] = []

    while first_of_month <= end:
        if rule.day_of_month <= first_of_month.days_in_month:
            candidate = first_of_month.replace(day=rule.day_of_month)
            if start <= candidate <= end:
                dates.append(candidate)
        first_of_month = first_of_month.add(months=rule.interval)

    return dates
