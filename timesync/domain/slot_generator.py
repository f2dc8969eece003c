"""
Enumeration of candidate meeting slots.

Pure domain logic without any external dependencies (no API calls, no
database, no I/O).
"""

from typing import Iterator, List, Tuple, Union

from pendulum import DateTime

from .models import DateRange, DayFilter, MeetingParameters, Slot, TimeWindow
from .timeutils import combine, from_minutes, to_minutes


class SlotSequence:
    """
    Lazy, finite and restartable sequence of slots.

    Every iteration walks the date range again, so two passes yield the same
    slots in the same order: date ascending, then start time ascending.

    Algorithm, per eligible date:
    1. Put a cursor on the window start
    2. Emit [cursor, cursor + duration) while it still ends inside the window
    3. Advance the cursor by one duration (back-to-back tiling)
    4. Drop the trailing remainder that is shorter than the duration
    """

    def __init__(self, parameters: MeetingParameters):
        self.parameters = parameters

    def __iter__(self) -> Iterator[Slot]:
        window = self.parameters.window
        duration = self.parameters.duration_minutes
        window_start = to_minutes(window.start_time)
        window_end = to_minutes(window.end_time)

        for day in self.parameters.date_range.days():
            if not self.parameters.day_filter.matches(day):
                continue

            cursor = window_start
            while cursor + duration <= window_end:
                yield Slot(
                    date=day,
                    start_time=from_minutes(cursor),
                    end_time=from_minutes(cursor + duration),
                )
                cursor += duration

    def slots_per_day(self) -> int:
        """Number of slots on every eligible date."""
        return self.parameters.window.duration_minutes() // self.parameters.duration_minutes

    def keys(self) -> List[str]:
        """Canonical keys of all slots, in order."""
        return [slot.key for slot in self]

    def __repr__(self) -> str:
        p = self.parameters
        return (
            f"SlotSequence({p.date_range.start}..{p.date_range.end}, {p.window}, "
            f"{p.duration_minutes}min, {p.day_filter.value})"
        )


def generate_slots(
    date_range: DateRange,
    window: TimeWindow,
    duration_minutes: int,
    day_filter: Union[DayFilter, str, int] = DayFilter.ALL_DAYS,
) -> SlotSequence:
    """
    Enumerate every fixed-duration candidate slot of a meeting.

    Args:
        date_range: Inclusive range of candidate dates
        window: Daily time window slots must fit into
        duration_minutes: Meeting length in minutes
        day_filter: Which dates of the range are eligible

    Returns:
        A restartable SlotSequence; empty when no date or window fits

    Raises:
        InvalidWindow: If the duration is not positive
    """
    parameters = MeetingParameters(
        date_range=date_range,
        window=window,
        duration_minutes=duration_minutes,
        day_filter=day_filter,
    )
    return SlotSequence(parameters)


def generate_for(parameters: MeetingParameters) -> SlotSequence:
    """Enumerate the candidate slots of already validated meeting parameters."""
    return SlotSequence(parameters)


def scheduled_interval(slot: Slot, tz: str = "UTC") -> Tuple[DateTime, DateTime]:
    """
    Absolute start and end instants of a chosen slot.

    This is what a calendar event for the scheduled meeting is created with.
    """
    return combine(slot.date, slot.start_time, tz), combine(slot.date, slot.end_time, tz)
