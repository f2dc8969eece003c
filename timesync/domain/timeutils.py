"""
Parsing, formatting and interval helpers shared by the scheduling core.

Every overlap check in the package goes through ``overlaps``: intervals
conflict only when they share a stretch of time, so touching endpoints
(one ends exactly when the other starts) do not conflict.
"""

import re
from datetime import date, datetime, time
from typing import TypeVar, Union

import pendulum
from pendulum import DateTime

from .exceptions import InvalidWindow, MalformedEntry
from .models import AvailabilityEntry, DayFilter, Slot

T = TypeVar("T")

DATE_FORMAT = "YYYY-MM-DD"
TIME_FORMAT = "H:mm"
TIME_FORMAT_WITH_SECONDS = "H:mm:ss"

MINUTES_PER_DAY = 24 * 60

_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLOT_KEY_PATTERN = re.compile(r"^(\d{4}-\d{2}-\d{2})T([0-9:]+)-([0-9:]+)$")


def parse_date(value: Union[str, date]) -> date:
    """
    Parse an ISO calendar date (``YYYY-MM-DD``).

    Raises:
        MalformedEntry: If the value is not a valid calendar date
    """
    if isinstance(value, date):
        return date(value.year, value.month, value.day)

    text = str(value).strip()
    if not _DATE_PATTERN.match(text):
        raise MalformedEntry(f"Invalid date '{value}', expected {DATE_FORMAT}")

    try:
        parsed = pendulum.from_format(text, DATE_FORMAT)
    except ValueError as exc:
        raise MalformedEntry(f"Invalid date '{value}': {exc}") from exc

    return date(parsed.year, parsed.month, parsed.day)


def parse_time(value: Union[str, time]) -> time:
    """
    Parse a 24-hour time of day (``HH:MM``; a trailing ``:00`` is tolerated).

    Raises:
        MalformedEntry: If the value is not a valid time of day
    """
    if isinstance(value, time):
        return time(hour=value.hour, minute=value.minute)

    text = str(value).strip()
    time_format = TIME_FORMAT_WITH_SECONDS if text.count(":") == 2 else TIME_FORMAT

    try:
        parsed = pendulum.from_format(text, time_format)
    except ValueError as exc:
        raise MalformedEntry(f"Invalid time '{value}', expected HH:MM") from exc

    if parsed.second:
        raise MalformedEntry(f"Invalid time '{value}', seconds must be :00")

    return time(hour=parsed.hour, minute=parsed.minute)


def format_time(value: time) -> str:
    """Format a time of day as ``HH:MM``."""
    return f"{value:%H:%M}"


def to_minutes(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


def from_minutes(minutes: int) -> time:
    """Time of day for a number of minutes since midnight."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidWindow(f"{minutes} minutes is outside a single day")
    return time(hour=minutes // 60, minute=minutes % 60)


def day_matches_filter(day: date, day_filter: Union[DayFilter, str, int]) -> bool:
    """Check whether a date is eligible under a day filter."""
    return DayFilter.from_code(day_filter).matches(day)


def overlaps(a_start: T, a_end: T, b_start: T, b_end: T) -> bool:
    """
    Check whether two intervals share time.

    Strict rule: ``max(a_start, b_start) < min(a_end, b_end)``.
    """
    return max(a_start, b_start) < min(a_end, b_end)


def combine(day: date, at: time, tz: str = "UTC") -> DateTime:
    """Absolute instant for a date and time of day in a fixed time zone."""
    return pendulum.datetime(day.year, day.month, day.day, at.hour, at.minute, tz=tz)


def parse_instant(value: Union[str, datetime], tz: str = "UTC") -> DateTime:
    """
    Parse an RFC 3339 style instant. Values without an offset are taken in ``tz``.

    Raises:
        MalformedEntry: If the value is not a date-time
    """
    if isinstance(value, datetime):
        return pendulum.instance(value, tz=tz)

    try:
        parsed = pendulum.parse(str(value).strip(), tz=tz)
    except ValueError as exc:
        raise MalformedEntry(f"Invalid instant '{value}': {exc}") from exc

    if not isinstance(parsed, DateTime):
        raise MalformedEntry(f"Invalid instant '{value}', expected a date-time")

    return parsed


def slot_key(slot: Slot) -> str:
    """Canonical key ``YYYY-MM-DDTHH:MM-HH:MM`` of a slot."""
    return slot.key


def parse_slot_key(key: str) -> Slot:
    """
    Parse a canonical slot key back into a slot.

    Raises:
        MalformedEntry: If the key is malformed or its end is not after its start
    """
    match = _SLOT_KEY_PATTERN.match(str(key).strip())
    if not match:
        raise MalformedEntry(f"Invalid slot key '{key}', expected YYYY-MM-DDTHH:MM-HH:MM")

    day = parse_date(match.group(1))
    start_time = parse_time(match.group(2))
    end_time = parse_time(match.group(3))

    if start_time >= end_time:
        raise MalformedEntry(f"Invalid slot key '{key}', end must be after start")

    return Slot(date=day, start_time=start_time, end_time=end_time)


def parse_entry(raw: Union[str, date, Slot, AvailabilityEntry]) -> AvailabilityEntry:
    """
    Turn a submitted value into an availability entry.

    Accepts a slot key (``YYYY-MM-DDTHH:MM-HH:MM``) or a bare date (``YYYY-MM-DD``).
    """
    if isinstance(raw, AvailabilityEntry):
        return raw
    if isinstance(raw, Slot):
        return AvailabilityEntry.for_slot(raw)
    if isinstance(raw, date):
        return AvailabilityEntry.for_date(parse_date(raw))

    text = str(raw).strip()
    if "T" in text:
        return AvailabilityEntry.for_slot(parse_slot_key(text))
    return AvailabilityEntry.for_date(parse_date(text))
