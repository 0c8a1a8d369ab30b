"""
Tests for recurrence expansion.
"""

from datetime import date, timedelta

import pytest

from availability_engine.domain.exceptions import InputOutOfRange, UnsupportedRecurrenceType
from availability_engine.domain.recurrence import expand_recurrence
from availability_engine.domain.models import RecurrenceRule


def _rule(type_: str, start: date, end: date, **kwargs) -> RecurrenceRule:
    return RecurrenceRule(type=type_, bound_start=start, bound_end=end, **kwargs)


class TestDaily:
    """Tests for daily rules."""

    def test_every_day_in_a_week(self):
        start = date(2025, 1, 15)

        dates = expand_recurrence(_rule("daily", start, start + timedelta(days=6)))

        assert dates == [start + timedelta(days=offset) for offset in range(7)]

    def test_every_third_day(self):
        dates = expand_recurrence(_rule("daily", date(2025, 1, 1), date(2025, 1, 10), interval=3))

        assert dates == [date(2025, 1, 1), date(2025, 1, 4), date(2025, 1, 7), date(2025, 1, 10)]

    def test_single_day_range(self):
        assert expand_recurrence(_rule("daily", date(2025, 1, 1), date(2025, 1, 1))) == [date(2025, 1, 1)]


class TestWeekly:
    """Tests for weekly rules (0=Sunday ... 6=Saturday)."""

    def test_mon_wed_fri_over_two_weeks(self):
        start = date(2025, 1, 15)

        dates = expand_recurrence(
            _rule("weekly", start, start + timedelta(days=13), days_of_week=frozenset({1, 3, 5}))
        )

        assert len(dates) == 6
        assert {d.isoweekday() for d in dates} == {1, 3, 5}
        assert dates == sorted(dates)

    def test_sunday_is_day_zero(self):
        dates = expand_recurrence(
            _rule("weekly", date(2025, 1, 1), date(2025, 1, 31), days_of_week=frozenset({0}))
        )

        assert dates == [date(2025, 1, 5), date(2025, 1, 12), date(2025, 1, 19), date(2025, 1, 26)]

    def test_every_other_week(self):
        """Weeks are counted from the Sunday-started week containing the bound start."""
        dates = expand_recurrence(
            _rule(
                "weekly",
                date(2025, 1, 5),
                date(2025, 2, 1),
                interval=2,
                days_of_week=frozenset({1}),
            )
        )

        assert dates == [date(2025, 1, 6), date(2025, 1, 20)]

    def test_every_other_week_starting_midweek(self):
        dates = expand_recurrence(
            _rule(
                "weekly",
                date(2025, 1, 8),
                date(2025, 1, 24),
                interval=2,
                days_of_week=frozenset({1, 5}),
            )
        )

        assert dates == [date(2025, 1, 10), date(2025, 1, 20), date(2025, 1, 24)]

    def test_weekly_without_days_rejected(self):
        with pytest.raises(InputOutOfRange):
            expand_recurrence(_rule("weekly", date(2025, 1, 1), date(2025, 1, 31)))


class TestMonthly:
    """Tests for monthly rules."""

    def test_day_31_skips_short_months(self):
        dates = expand_recurrence(
            _rule("monthly", date(2025, 1, 1), date(2025, 12, 31), day_of_month=31)
        )

        assert [d.month for d in dates] == [1, 3, 5, 7, 8, 10, 12]
        assert all(d.day == 31 for d in dates)

    def test_february_29_only_in_leap_years(self):
        leap = expand_recurrence(_rule("monthly", date(2024, 2, 1), date(2024, 2, 29), day_of_month=29))
        common = expand_recurrence(_rule("monthly", date(2025, 2, 1), date(2025, 2, 28), day_of_month=29))

        assert leap == [date(2024, 2, 29)]
        assert common == []

    def test_every_other_month_respects_bound_start(self):
        """January 15 precedes the bound start, so the first hit is March."""
        dates = expand_recurrence(
            _rule("monthly", date(2025, 1, 20), date(2025, 7, 31), interval=2, day_of_month=15)
        )

        assert dates == [date(2025, 3, 15), date(2025, 5, 15), date(2025, 7, 15)]

    def test_monthly_without_day_rejected(self):
        with pytest.raises(InputOutOfRange):
            expand_recurrence(_rule("monthly", date(2025, 1, 1), date(2025, 12, 31)))


class TestRuleHandling:
    """Tests for rule-level errors and properties."""

    def test_unsupported_type(self):
        with pytest.raises(UnsupportedRecurrenceType, match="yearly"):
            expand_recurrence(_rule("yearly", date(2025, 1, 1), date(2025, 12, 31)))

    def test_inverted_bounds_rejected(self):
        with pytest.raises(InputOutOfRange):
            expand_recurrence(_rule("daily", date(2025, 1, 10), date(2025, 1, 1)))

    def test_expansion_is_repeatable(self):
        rule = _rule("weekly", date(2025, 1, 1), date(2025, 3, 31), days_of_week=frozenset({2, 4}))

        assert expand_recurrence(rule) == expand_recurrence(rule)

    def test_dates_stay_within_bounds(self):
        start, end = date(2025, 1, 3), date(2025, 4, 17)
        rule = _rule("daily", start, end, interval=5)

        assert all(start <= d <= end for d in expand_recurrence(rule))
