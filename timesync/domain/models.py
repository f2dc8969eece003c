"""
Domain models for meeting slots, availability and busy intervals.

All models are plain values computed per request; nothing here is persisted.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

import pendulum
from pendulum import DateTime

from .exceptions import InvalidRange, InvalidWindow, MalformedEntry


class DayFilter(str, Enum):
    """Which calendar dates of a range are eligible for slots."""

    ALL_DAYS = "all"
    WEEKDAYS = "weekdays"
    WEEKENDS = "weekends"

    @classmethod
    def from_code(cls, value: Union["DayFilter", str, int]) -> "DayFilter":
        """
        Resolve a day filter from its value, its name or a legacy numeric code.

        Legacy codes: 1 = weekdays, 2 = weekends, 3 = all days.
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return _LEGACY_DAY_CODES[value]
            except KeyError:
                raise ValueError(f"Unknown day filter code: {value}") from None

        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized.isdigit():
                return cls.from_code(int(normalized))
            for member in cls:
                if normalized in (member.value, member.name.lower()):
                    return member

        raise ValueError(
            f"Unknown day filter: {value!r}. Use one of: "
            + ", ".join(member.value for member in cls)
        )

    def matches(self, day: date) -> bool:
        """Check whether a calendar date belongs to this day class."""
        if self is DayFilter.ALL_DAYS:
            return True

        # ISO numbering: Monday=1 .. Sunday=7
        is_weekend = day.isoweekday() >= 6
        if self is DayFilter.WEEKENDS:
            return is_weekend
        return not is_weekend


_LEGACY_DAY_CODES = {
    1: DayFilter.WEEKDAYS,
    2: DayFilter.WEEKENDS,
    3: DayFilter.ALL_DAYS,
}


class DurationUnit(str, Enum):
    """Unit a meeting duration is declared in."""

    MINUTES = "minutes"
    HOURS = "hours"


def to_minutes(value: Union[int, float], unit: Union[DurationUnit, str] = DurationUnit.MINUTES) -> int:
    """
    Reduce a duration declared in minutes or hours to whole minutes.

    Raises:
        InvalidWindow: If the duration is not positive or not a whole number of minutes
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidWindow(f"Duration must be a number, got {value!r}")
    if not math.isfinite(value):
        raise InvalidWindow(f"Duration must be a finite number, got {value!r}")

    unit = DurationUnit(unit)
    minutes = value * 60 if unit is DurationUnit.HOURS else value

    if minutes != int(minutes):
        raise InvalidWindow(f"Duration of {value} {unit.value} is not a whole number of minutes")
    if minutes <= 0:
        raise InvalidWindow(f"Duration must be greater than zero, got {value} {unit.value}")

    return int(minutes)


@dataclass(frozen=True)
class DateRange:
    """
    Inclusive range of calendar dates.

    Invariant: start must not be after end.
    """
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise InvalidRange(f"Start date {self.start} must not be after end date {self.end}")

    def days(self) -> Iterator[date]:
        """Yield every calendar date in the range, both ends included."""
        current = pendulum.date(self.start.year, self.start.month, self.start.day)

        while current <= self.end:
            yield date(current.year, current.month, current.day)
            current = current.add(days=1)

    def day_count(self) -> int:
        return (self.end - self.start).days + 1

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class TimeWindow:
    """
    Daily time window on a 24-hour clock (UTC assumed).

    Invariant: start_time must be before end_time.
    """
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise InvalidWindow(
                f"Start time {self.start_time:%H:%M} must be before end time {self.end_time:%H:%M}"
            )

    def duration_minutes(self) -> int:
        """Return the window length in minutes."""
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start

    def contains(self, start_time: time, end_time: time) -> bool:
        """Check if a time-of-day range lies inside the window."""
        return self.start_time <= start_time and end_time <= self.end_time

    def __str__(self) -> str:
        return f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"


@dataclass(frozen=True)
class Slot:
    """
    A fixed-duration candidate meeting time on a specific date.

    Two slots are equal iff date, start_time and end_time match exactly.
    """
    date: date
    start_time: time
    end_time: time

    def __post_init__(self):
        if self.start_time >= self.end_time:
            raise InvalidWindow(
                f"Slot start {self.start_time:%H:%M} must be before end {self.end_time:%H:%M}"
            )

    @property
    def key(self) -> str:
        """Canonical slot key ``YYYY-MM-DDTHH:MM-HH:MM``."""
        return f"{self.date.isoformat()}T{self.start_time:%H:%M}-{self.end_time:%H:%M}"

    def duration_minutes(self) -> int:
        start = self.start_time.hour * 60 + self.start_time.minute
        end = self.end_time.hour * 60 + self.end_time.minute
        return end - start

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class MeetingParameters:
    """Everything needed to enumerate the candidate slots of a meeting."""
    date_range: DateRange
    window: TimeWindow
    duration_minutes: int
    day_filter: DayFilter = DayFilter.ALL_DAYS

    def __post_init__(self):
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise InvalidWindow(f"Duration must be whole minutes, got {self.duration_minutes!r}")
        if self.duration_minutes <= 0:
            raise InvalidWindow(f"Duration must be greater than zero, got {self.duration_minutes}")
        object.__setattr__(self, "day_filter", DayFilter.from_code(self.day_filter))


class IdentityKind(str, Enum):
    """How a participant identified themselves when submitting availability."""

    USER = "user"
    EMAIL = "email"
    TOKEN = "token"


@dataclass(frozen=True)
class Identity:
    """
    Participant identity as a tagged variant.

    Exactly one value per kind; emails compare case-insensitively.
    """
    kind: IdentityKind
    value: str

    def __post_init__(self):
        kind = IdentityKind(self.kind)
        value = str(self.value).strip() if self.value is not None else ""
        if not value:
            raise ValueError(f"Identity of kind '{kind.value}' needs a non-empty value")
        if kind is IdentityKind.EMAIL:
            value = value.lower()
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)

    @classmethod
    def user(cls, user_id: Union[str, int]) -> "Identity":
        return cls(IdentityKind.USER, str(user_id))

    @classmethod
    def email(cls, address: str) -> "Identity":
        return cls(IdentityKind.EMAIL, address)

    @classmethod
    def token(cls, token: str) -> "Identity":
        return cls(IdentityKind.TOKEN, token)

    @property
    def key(self) -> str:
        return f"{self.kind.value}:{self.value}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class AvailabilityEntry:
    """
    One declared availability: a specific slot, or a bare date.

    A bare date means "available for the meeting's whole daily window on that date".
    """
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    def __post_init__(self):
        if (self.start_time is None) != (self.end_time is None):
            raise MalformedEntry("An availability entry needs both start and end time, or neither")
        if self.start_time is not None and self.start_time >= self.end_time:
            raise MalformedEntry(
                f"Entry start {self.start_time:%H:%M} must be before end {self.end_time:%H:%M}"
            )

    @classmethod
    def for_slot(cls, slot: Slot) -> "AvailabilityEntry":
        return cls(date=slot.date, start_time=slot.start_time, end_time=slot.end_time)

    @classmethod
    def for_date(cls, day: date) -> "AvailabilityEntry":
        return cls(date=day)

    @property
    def is_whole_day(self) -> bool:
        return self.start_time is None

    @property
    def slot(self) -> Optional[Slot]:
        if self.is_whole_day:
            return None
        return Slot(date=self.date, start_time=self.start_time, end_time=self.end_time)

    def __str__(self) -> str:
        if self.is_whole_day:
            return self.date.isoformat()
        return self.slot.key


@dataclass(frozen=True)
class Submission:
    """A participant's complete availability snapshot; a newer one replaces it."""
    identity: Identity
    entries: Tuple[AvailabilityEntry, ...] = ()
    display_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))


@dataclass(frozen=True)
class BusyInterval:
    """
    Externally sourced conflict window between two absolute instants.

    Naive datetimes are taken as UTC. Zero-length intervals are allowed.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        start = _as_instant(self.start)
        end = _as_instant(self.end)
        if end < start:
            raise InvalidRange(f"Busy interval end {end} is before its start {start}")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() / 60)

    def __str__(self) -> str:
        return f"{self.start.to_iso8601_string()} - {self.end.to_iso8601_string()}"


def _as_instant(value: datetime) -> DateTime:
    if not isinstance(value, datetime):
        raise MalformedEntry(f"Expected a datetime, got {value!r}")
    return pendulum.instance(value, tz="UTC")


@dataclass(frozen=True)
class ParticipantDetail:
    """Who declared a slot available."""
    identity: Identity
    display_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.identity.kind.value,
            "identity": self.identity.value,
            "display_name": self.display_name,
        }


@dataclass
class RankedSlot:
    """
    A slot annotated with how many participants declared it available.
    """
    slot: Slot
    participant_count: int = 0
    participant_details: List[ParticipantDetail] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.slot.key

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.slot.key,
            "date": self.slot.date.isoformat(),
            "start_time": f"{self.slot.start_time:%H:%M}",
            "end_time": f"{self.slot.end_time:%H:%M}",
            "participants": self.participant_count,
            "participant_details": [detail.to_dict() for detail in self.participant_details],
        }


@dataclass(frozen=True)
class DateSummary:
    """Number of distinct participants that marked anything on a date."""
    date: date
    participant_count: int


@dataclass
class AvailabilityReport:
    """Ranked slots plus per-date and response figures for a meeting."""
    ranked_slots: List[RankedSlot]
    by_date: List[DateSummary]
    responded: int
    invited: Optional[int] = None

    @property
    def pending(self) -> Optional[int]:
        """Invited participants that have not responded yet, when known."""
        if self.invited is None:
            return None
        return max(self.invited - self.responded, 0)
