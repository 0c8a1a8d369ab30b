"""
Timezone validation and instant <-> wall-clock conversions.

DST handling is delegated to the tz database through pendulum; nothing here
does offset arithmetic by hand.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import FrozenSet, Optional, Union

import pendulum
from pendulum import DateTime
from pendulum.parsing.exceptions import ParserError
from pendulum.tz.exceptions import AmbiguousTime, NonExistingTime
from pendulum.tz.timezone import FixedTimezone, Timezone

from .exceptions import AmbiguousLocalTime, InputOutOfRange, InvalidTimeZone

logger = logging.getLogger(__name__)

TimezoneLike = Union[str, Timezone, FixedTimezone]


def resolve_timezone(tz: TimezoneLike) -> Union[Timezone, FixedTimezone]:
    """
    Resolve an IANA identifier to a pendulum timezone without caching.

    Raises:
        InvalidTimeZone: If the identifier does not resolve
    """
    if isinstance(tz, (Timezone, FixedTimezone)):
        return tz

    if not isinstance(tz, str) or not tz.strip():
        raise InvalidTimeZone(f"Invalid time zone: {tz!r}")

    try:
        return pendulum.timezone(tz)
    except (ValueError, KeyError, OSError) as exc:
        raise InvalidTimeZone(f"Invalid time zone: {tz}") from exc


def parse_iso8601(text: str) -> DateTime:
    """
    Parse an ISO 8601 datetime string.

    Strings carrying an offset (``Z``, ``+02:00``) yield an aware value;
    strings without one yield a naive wall-clock value.

    Raises:
        InputOutOfRange: If the text is not an ISO 8601 datetime
    """
    try:
        parsed = pendulum.parse(text, tz=None)
    except (ParserError, ValueError) as exc:
        raise InputOutOfRange(f"Could not parse datetime: {text!r}") from exc

    if not isinstance(parsed, datetime):
        raise InputOutOfRange(f"Expected a date and time, got {text!r}")
    return parsed


def anchor_local(value: datetime, tz: Union[Timezone, FixedTimezone]) -> DateTime:
    """
    Attach a zone to a naive wall-clock datetime.

    Raises:
        AmbiguousLocalTime: If the wall-clock time is repeated or skipped in ``tz``
    """
    try:
        return pendulum.datetime(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            tz=tz,
            raise_on_unknown_times=True,
        )
    except NonExistingTime as exc:
        raise AmbiguousLocalTime(
            f"Local time {value.isoformat()} does not exist in {tz.name}"
        ) from exc
    except AmbiguousTime as exc:
        raise AmbiguousLocalTime(
            f"Local time {value.isoformat()} is ambiguous in {tz.name}"
        ) from exc


class TimeZoneRegistry:
    """
    Validates timezone identifiers and converts between instants and local times.

    Successful validations are remembered for the registry's lifetime; failed
    ones are not, so garbage input cannot grow the cache. The cache is an
    immutable snapshot replaced on insert, so concurrent callers never see a
    partially updated set.
    """

    def __init__(self) -> None:
        self._valid: FrozenSet[str] = frozenset()

    @property
    def cached_identifiers(self) -> FrozenSet[str]:
        """Identifiers validated so far."""
        return self._valid

    def is_valid_time_zone(self, tz_id: str) -> bool:
        """Check whether an identifier resolves against the tz database."""
        if isinstance(tz_id, str) and tz_id in self._valid:
            return True

        try:
            resolve_timezone(tz_id)
        except InvalidTimeZone:
            return False

        self._valid = self._valid | {tz_id}
        logger.debug("Cached valid time zone %s", tz_id)
        return True

    def resolve(self, tz: TimezoneLike) -> Union[Timezone, FixedTimezone]:
        """
        Resolve an identifier, recording it in the validity cache.

        Raises:
            InvalidTimeZone: If the identifier does not resolve
        """
        if isinstance(tz, (Timezone, FixedTimezone)):
            return tz
        if not self.is_valid_time_zone(tz):
            raise InvalidTimeZone(f"Invalid time zone: {tz!r}")
        return resolve_timezone(tz)

    def convert(
        self,
        value: Union[datetime, str],
        source_tz: TimezoneLike,
        target_tz: TimezoneLike,
    ) -> DateTime:
        """
        Express a moment in ``target_tz``.

        Naive wall-clock values (naive datetimes, ISO strings without an
        offset) are first anchored in ``source_tz``; aware values already
        name an instant and only change how it is displayed.

        Raises:
            InvalidTimeZone: If either zone does not resolve
            AmbiguousLocalTime: If a naive value falls in a DST gap or overlap
        """
        source = self.resolve(source_tz)
        target = self.resolve(target_tz)

        if isinstance(value, str):
            value = parse_iso8601(value)

        if value.tzinfo is None:
            anchored = anchor_local(value, source)
        else:
            anchored = pendulum.instance(value)

        return anchored.in_timezone(target)

    def localize(self, instant: datetime, tz: TimezoneLike) -> DateTime:
        """Return the wall-clock representation of an instant in ``tz``."""
        zone = self.resolve(tz)
        return pendulum.instance(instant).in_timezone(zone)

    def combine(self, local_date: date, local_time: time, tz: TimezoneLike) -> DateTime:
        """
        Compose a calendar date and a time of day in ``tz`` into an instant.

        Raises:
            InvalidTimeZone: If the zone does not resolve
            AmbiguousLocalTime: If the local time is repeated or skipped by DST
        """
        zone = self.resolve(tz)
        naive = datetime.combine(local_date, local_time.replace(tzinfo=None))
        return anchor_local(naive, zone)

    def offset_minutes(self, tz: TimezoneLike, at: Optional[datetime] = None) -> int:
        """UTC offset of ``tz`` in minutes at a given instant (default: now)."""
        zone = self.resolve(tz)
        moment = pendulum.now(zone) if at is None else pendulum.instance(at).in_timezone(zone)
        return int(moment.utcoffset().total_seconds() // 60)

    def now(self, tz: TimezoneLike) -> DateTime:
        """Current wall-clock time in ``tz``."""
        return pendulum.now(self.resolve(tz))

    def format(self, instant: datetime, tz: TimezoneLike, fmt: str = "YYYY-MM-DD HH:mm") -> str:
        """Render an instant in ``tz`` using pendulum format tokens."""
        return self.localize(instant, tz).format(fmt)
