"""
Application service for planning a meeting.

The service generates the candidate slots of a meeting, folds participant
availability onto them and checks slots against a calendar source. The
calendar dependency is a simple protocol so the Google client, the JSON file
source or a test stub can be plugged in.
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import Iterable, List, Optional, Protocol, Sequence, Tuple

from ..domain.aggregator import AvailabilityAggregator, build_report
from ..domain.conflicts import ConflictFilter
from ..domain.models import AvailabilityReport, BusyInterval, MeetingParameters, RankedSlot, Slot, Submission
from ..domain.slot_generator import SlotSequence, generate_for
from ..domain.timeutils import combine, parse_slot_key

logger = logging.getLogger(__name__)


class CalendarSourceProtocol(Protocol):
    """Protocol describing the calendar behaviour needed by the planner."""

    def get_busy_intervals(self, start: datetime, end: datetime) -> List[BusyInterval]:
        """Return busy intervals between two instants."""


class MeetingPlanner:
    """
    Orchestrates slot generation, availability ranking and conflict checks.
    """

    def __init__(
        self,
        parameters: MeetingParameters,
        calendar: Optional[CalendarSourceProtocol] = None,
        timezone: str = "UTC",
    ) -> None:
        self.parameters = parameters
        self.timezone = timezone
        self._calendar = calendar

    def time_slots(self) -> SlotSequence:
        """All candidate slots of the meeting."""
        return generate_for(self.parameters)

    def rank(self, submissions: Iterable[Submission]) -> List[RankedSlot]:
        """Candidate slots ranked by participant count."""
        aggregator = AvailabilityAggregator(window=self.parameters.window)
        return aggregator.aggregate(self.time_slots(), submissions)

    def availability(
        self,
        submissions: Iterable[Submission],
        invited: Optional[int] = None,
    ) -> AvailabilityReport:
        """Ranked slots with per-date counts and response figures."""
        report = build_report(
            self.time_slots(),
            submissions,
            window=self.parameters.window,
            invited=invited,
        )
        logger.info(
            "Ranked %d slots from %d responses",
            len(report.ranked_slots),
            report.responded,
        )
        return report

    def check_slots(
        self,
        slot_keys: Sequence[str],
        busy: Optional[Sequence[BusyInterval]] = None,
    ) -> Tuple[List[str], List[str]]:
        """
        Split slot keys into (free, conflicting).

        Busy intervals are fetched from the calendar source over the slots'
        dates unless given explicitly.

        Raises:
            MalformedEntry: If a slot key cannot be parsed
        """
        results = check_slot_keys(self._calendar, slot_keys, self.timezone, busy=busy)

        free = [slot.key for slot, conflicts in results if not conflicts]
        conflicting = [slot.key for slot, conflicts in results if conflicts]
        return free, conflicting

    def free_slots(self, busy: Optional[Sequence[BusyInterval]] = None) -> List[Slot]:
        """Candidate slots that do not collide with the calendar."""
        slots = list(self.time_slots())
        if not slots:
            return []

        if busy is None:
            busy = self.fetch_busy_intervals(slots)

        free, _ = ConflictFilter(busy, tz=self.timezone).partition(slots)
        return free

    def fetch_busy_intervals(self, slots: Sequence[Slot]) -> List[BusyInterval]:
        """
        Busy intervals covering the whole days the slots fall on.

        Without a calendar source nothing is busy.
        """
        if self._calendar is None:
            logger.debug("No calendar source configured; treating every slot as free")
            return []
        return fetch_busy_for_slots(self._calendar, slots, self.timezone)


def fetch_busy_for_slots(
    calendar: CalendarSourceProtocol,
    slots: Sequence[Slot],
    timezone: str = "UTC",
) -> List[BusyInterval]:
    """Ask a calendar source for busy intervals from the first to the last slot day."""
    if not slots:
        return []

    days = sorted({slot.date for slot in slots})
    start = combine(days[0], time(0, 0), timezone)
    end = combine(days[-1], time(0, 0), timezone).add(days=1)

    busy = calendar.get_busy_intervals(start, end)
    logger.debug("Calendar returned %d busy intervals between %s and %s", len(busy), start, end)
    return busy


def check_slot_keys(
    calendar: Optional[CalendarSourceProtocol],
    slot_keys: Sequence[str],
    timezone: str = "UTC",
    busy: Optional[Sequence[BusyInterval]] = None,
) -> List[Tuple[Slot, List[BusyInterval]]]:
    """
    Pair each slot key with the busy intervals it runs into.

    Busy intervals come from ``calendar`` over the slots' dates unless given
    explicitly. Without either, every slot is free.

    Raises:
        MalformedEntry: If a slot key cannot be parsed
    """
    slots = [parse_slot_key(key) for key in slot_keys]
    if not slots:
        return []

    if busy is None:
        busy = fetch_busy_for_slots(calendar, slots, timezone) if calendar is not None else []

    conflict_filter = ConflictFilter(busy, tz=timezone)
    results = [(slot, conflict_filter.conflicts_for(slot)) for slot in slots]
    logger.debug(
        "%d of %d slots conflict with busy times",
        sum(1 for _, conflicts in results if conflicts),
        len(slots),
    )
    return results
