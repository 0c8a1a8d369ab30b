"""
Tests for the SchedulingFacade service layer.
"""

from datetime import date, time
from typing import Dict, List

import pendulum
import pytest

from availability_engine.config import BusinessHoursConfig, DayHoursConfig, EngineConfig
from availability_engine.domain.exceptions import (
    InputOutOfRange,
    InvalidInterval,
    InvalidTimeZone,
)
from availability_engine.domain.models import RecurrenceRule
from availability_engine.services.scheduling import SchedulingFacade


def _build_facade(**overrides) -> SchedulingFacade:
    config = EngineConfig(
        default_timezone=overrides.pop("default_timezone", "UTC"),
        business_hours=BusinessHoursConfig(
            days={0: DayHoursConfig(closed=True), 6: DayHoursConfig(closed=True)},
            default=DayHoursConfig(open=time(9, 0), close=time(17, 0)),
        ),
        **overrides,
    )
    return SchedulingFacade(config=config)


def _busy(start: str, end: str, **extra) -> Dict[str, str]:
    return {"start": start, "end": end, **extra}


class TestAvailability:
    """Slot search through the facade."""

    def test_find_slots_from_iso_strings(self):
        facade = _build_facade()

        slots = facade.find_available_slots(
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
            busy_intervals=[_busy("2025-01-15T10:00:00Z", "2025-01-15T11:00:00Z")],
        )

        assert len(slots) == 7

    def test_configured_buffer_is_default(self):
        facade = _build_facade(buffer_minutes=15)

        slots = facade.find_available_slots(
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
            busy_intervals=[_busy("2025-01-15T10:00:00Z", "2025-01-15T11:00:00Z")],
        )

        assert slots[0].start == pendulum.datetime(2025, 1, 15, 11, 15, tz="UTC")

    def test_explicit_buffer_overrides_config(self):
        facade = _build_facade(buffer_minutes=15)

        slots = facade.find_available_slots(
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
            busy_intervals=[_busy("2025-01-15T10:00:00Z", "2025-01-15T11:00:00Z")],
            buffer_minutes=0,
        )

        assert len(slots) == 7

    def test_configured_timezone_applies_to_business_hours(self):
        """Berlin business hours start at 08:00 UTC in January."""
        facade = _build_facade(default_timezone="Europe/Berlin")

        slots = facade.find_available_slots(
            window_start="2025-01-15T07:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
        )

        assert slots[0].start == pendulum.datetime(2025, 1, 15, 8, 0, tz="UTC")

    def test_business_hours_mapping(self):
        """Flat caller form with string weekday keys and start/end aliases."""
        facade = _build_facade()

        slots = facade.find_available_slots(
            window_start="2025-01-15T00:00:00Z",
            window_end="2025-01-16T00:00:00Z",
            duration_minutes=60,
            business_hours={"3": {"start": "10:00", "end": "12:00"}},
        )

        assert [s.start.hour for s in slots] == [10, 11]

    def test_invalid_business_hours_mapping(self):
        facade = _build_facade()

        with pytest.raises(InputOutOfRange):
            facade.find_available_slots(
                window_start="2025-01-15T09:00:00Z",
                window_end="2025-01-15T17:00:00Z",
                duration_minutes=60,
                business_hours={"default": {"open": "17:00", "close": "09:00"}},
            )

    def test_inverted_window_from_strings(self):
        facade = _build_facade()

        with pytest.raises(InvalidInterval):
            facade.find_available_slots(
                window_start="2025-01-15T17:00:00Z",
                window_end="2025-01-15T09:00:00Z",
                duration_minutes=30,
            )

    def test_unknown_timezone(self):
        facade = _build_facade()

        with pytest.raises(InvalidTimeZone):
            facade.find_available_slots(
                window_start="2025-01-15T09:00:00Z",
                window_end="2025-01-15T17:00:00Z",
                duration_minutes=30,
                tz="Invalid/Zone",
            )

    def test_next_slot_skips_weekend(self):
        facade = _build_facade()

        slot = facade.get_next_available_slot(
            from_instant="2025-01-17T17:00:00Z",
            duration_minutes=30,
        )

        assert slot.start == pendulum.datetime(2025, 1, 20, 9, 0, tz="UTC")

    def test_check_slot_with_conflict(self):
        facade = _build_facade(suggestion_limit=2)

        result = facade.check_slot_availability(
            start="2025-01-15T10:00:00Z",
            end="2025-01-15T11:00:00Z",
            busy_intervals=[_busy("2025-01-15T10:30:00Z", "2025-01-15T11:30:00Z", id=17)],
        )

        assert not result.available
        assert result.conflicts[0].source_id == "17"
        assert [s.start.format("HH:mm") for s in result.suggestions] == ["11:30", "12:30"]


class TestCommonSlots:
    """Multi-participant search."""

    def _schedule(self) -> Dict[str, List[Dict[str, str]]]:
        return {
            "a@example.com": [_busy("2025-01-15T11:00:00Z", "2025-01-15T12:00:00Z")],
            "b@example.com": [_busy("2025-01-15T14:00:00Z", "2025-01-15T15:00:00Z")],
        }

    def test_common_slots_avoid_everyone_busy_time(self):
        facade = _build_facade()

        slots = facade.find_common_slots(
            busy_by_participant=self._schedule(),
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
        )

        assert [s.start.hour for s in slots] == [9, 10, 12, 13, 15, 16]

    def test_missing_participant_has_no_busy_time(self):
        """Participants without schedule entries do not block anything."""
        facade = _build_facade()

        slots = facade.find_common_slots(
            busy_by_participant=self._schedule(),
            participants=["a@example.com", "b@example.com", "c@example.com"],
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
        )

        assert len(slots) == 6

    def test_limit(self):
        facade = _build_facade()

        slots = facade.find_common_slots(
            busy_by_participant=self._schedule(),
            window_start="2025-01-15T09:00:00Z",
            window_end="2025-01-15T17:00:00Z",
            duration_minutes=60,
            limit=2,
        )

        assert [s.start.hour for s in slots] == [9, 10]

    def test_negative_limit_rejected(self):
        facade = _build_facade()

        with pytest.raises(InputOutOfRange):
            facade.find_common_slots(
                busy_by_participant={},
                window_start="2025-01-15T09:00:00Z",
                window_end="2025-01-15T17:00:00Z",
                duration_minutes=60,
                limit=-1,
            )

    def test_ensure_busy_entries_keeps_order_and_extras(self):
        normalized = SchedulingFacade._ensure_busy_entries(
            ["b@example.com", "c@example.com"],
            {"a@example.com": [], "b@example.com": []},
        )

        assert list(normalized) == ["b@example.com", "c@example.com", "a@example.com"]
        assert list(normalized["c@example.com"]) == []


class TestTimezonesAndIntervals:
    """Timezone and interval helpers exposed by the facade."""

    def test_convert_time_zone(self):
        converted = _build_facade().convert_time_zone(
            "2025-01-15T12:00:00Z", "UTC", "America/New_York"
        )

        assert converted.hour == 7
        assert converted == pendulum.datetime(2025, 1, 15, 12, tz="UTC")

    def test_validity_cache_is_per_instance(self):
        first = _build_facade()
        second = _build_facade()

        assert first.validate_time_zone("Europe/Paris")
        assert "Europe/Paris" not in second.registry.cached_identifiers

    def test_localize_and_combine(self):
        facade = _build_facade()

        assert facade.localize("2025-07-01T12:00:00Z", "Europe/Berlin").hour == 14
        assert facade.combine(date(2025, 7, 1), time(14, 0), "Europe/Berlin") == pendulum.datetime(
            2025, 7, 1, 12, tz="UTC"
        )

    def test_time_zone_offset(self):
        assert _build_facade().time_zone_offset("Europe/Berlin", "2025-07-01T12:00:00Z") == 120

    def test_overlaps_accepts_mappings(self):
        facade = _build_facade()

        assert facade.overlaps(
            _busy("2025-01-15T09:00:00Z", "2025-01-15T10:00:00Z"),
            _busy("2025-01-15T09:59:00Z", "2025-01-15T11:00:00Z"),
        )
        assert not facade.overlaps(
            _busy("2025-01-15T09:00:00Z", "2025-01-15T10:00:00Z"),
            _busy("2025-01-15T10:00:00Z", "2025-01-15T11:00:00Z"),
        )

    def test_duration_minutes_accepts_mapping(self):
        assert _build_facade().duration_minutes(_busy("2025-01-15T09:00:00Z", "2025-01-15T10:45:00Z")) == 105


class TestBusinessHoursAndRecurrence:
    """Business-hours checks and recurrence expansion through the facade."""

    def test_is_within_business_hours_uses_config(self):
        facade = _build_facade()

        assert facade.is_within_business_hours("2025-01-15T10:00:00Z")
        assert not facade.is_within_business_hours("2025-01-12T10:00:00Z")  # Sunday

    def test_is_within_business_hours_with_mapping(self):
        facade = _build_facade()
        hours = {"0": {"closed": True}, "default": {"start": "08:00", "end": "12:00"}}

        assert facade.is_within_business_hours("2025-01-15T08:30:00Z", business_hours=hours)
        assert not facade.is_within_business_hours("2025-01-12T08:30:00Z", business_hours=hours)

    def test_business_hours_with_offset_times_rejected(self):
        hours = {"default": {"open": "09:00Z", "close": "17:00Z"}}

        with pytest.raises(InputOutOfRange):
            _build_facade().is_within_business_hours("2025-01-15T10:00:00Z", business_hours=hours)

    def test_business_hours_must_be_a_mapping(self):
        with pytest.raises(InputOutOfRange):
            _build_facade().is_within_business_hours("2025-01-15T10:00:00Z", business_hours=["9-17"])

    def test_business_days(self):
        days = _build_facade().business_days(date(2025, 1, 10), date(2025, 1, 14))

        assert days == [date(2025, 1, 10), date(2025, 1, 13), date(2025, 1, 14)]

    def test_occurrences_from_pattern_mapping(self):
        dates = _build_facade().generate_recurring_occurrences(
            {"type": "weekly", "daysOfWeek": [1, 3, 5]},
            date(2025, 1, 15),
            date(2025, 1, 28),
        )

        assert len(dates) == 6

    def test_occurrences_from_rule_with_bound_override(self):
        rule = RecurrenceRule(type="daily", bound_start=date(2025, 1, 1), bound_end=date(2025, 1, 31))

        dates = _build_facade().generate_recurring_occurrences(rule, end_date=date(2025, 1, 3))

        assert dates == [date(2025, 1, 1), date(2025, 1, 2), date(2025, 1, 3)]

    def test_pattern_mapping_needs_bounds(self):
        with pytest.raises(InputOutOfRange):
            _build_facade().generate_recurring_occurrences({"type": "daily"})
