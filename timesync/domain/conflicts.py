"""
Removing candidate slots that collide with known busy intervals.
"""

from bisect import bisect_left
from typing import Iterable, List, Sequence, Tuple

from pendulum import DateTime

from .models import BusyInterval, Slot
from .timeutils import combine, overlaps


def slot_interval(slot: Slot, tz: str = "UTC") -> Tuple[DateTime, DateTime]:
    """Absolute ``[start, end)`` instants of a slot in a fixed time zone."""
    return combine(slot.date, slot.start_time, tz), combine(slot.date, slot.end_time, tz)


class ConflictFilter:
    """
    Checks slots against a set of busy intervals.

    Busy intervals are sorted and merged once, so each slot check is a
    binary search instead of a scan over every interval.
    """

    def __init__(self, busy: Iterable[BusyInterval], tz: str = "UTC"):
        self.tz = tz
        self.busy: List[BusyInterval] = list(busy)
        self._merged = self._merge_intervals(self.busy)
        self._starts = [start for start, _ in self._merged]

    def is_conflicting(self, slot: Slot) -> bool:
        """Check if the slot overlaps any busy interval."""
        if not self._merged:
            return False

        start, end = slot_interval(slot, self.tz)

        # Merged intervals are disjoint: only the last one starting before
        # the slot ends can reach into it.
        index = bisect_left(self._starts, end)
        if index == 0:
            return False

        busy_start, busy_end = self._merged[index - 1]
        return overlaps(start, end, busy_start, busy_end)

    def conflicts_for(self, slot: Slot) -> List[BusyInterval]:
        """Unmerged busy intervals the slot overlaps, in input order."""
        start, end = slot_interval(slot, self.tz)
        return [busy for busy in self.busy if overlaps(start, end, busy.start, busy.end)]

    def partition(self, slots: Iterable[Slot]) -> Tuple[List[Slot], List[Slot]]:
        """Split slots into (free, conflicting), both in input order."""
        free: List[Slot] = []
        conflicting: List[Slot] = []

        for slot in slots:
            if self.is_conflicting(slot):
                conflicting.append(slot)
            else:
                free.append(slot)

        return free, conflicting

    @staticmethod
    def _merge_intervals(busy: Sequence[BusyInterval]) -> List[Tuple[DateTime, DateTime]]:
        """
        Merge overlapping or adjacent busy intervals.

        Zero-length intervals are dropped; they can never overlap a slot.

        Example: [09:00-10:00, 10:00-11:00, 13:00-14:00] -> [09:00-11:00, 13:00-14:00]
        """
        ranges = sorted(
            ((interval.start, interval.end) for interval in busy if interval.start < interval.end),
            key=lambda pair: pair[0],
        )
        if not ranges:
            return []

        merged = [ranges[0]]
        for start, end in ranges[1:]:
            last_start, last_end = merged[-1]
            if start <= last_end:
                merged[-1] = (last_start, max(last_end, end))
            else:
                merged.append((start, end))

        return merged


def partition(
    slots: Iterable[Slot],
    busy: Iterable[BusyInterval],
    tz: str = "UTC",
) -> Tuple[List[Slot], List[Slot]]:
    """Split slots into those free of busy intervals and those conflicting."""
    return ConflictFilter(busy, tz=tz).partition(slots)


def filter_conflicting(
    slots: Iterable[Slot],
    busy: Iterable[BusyInterval],
    tz: str = "UTC",
) -> List[Slot]:
    """Slots that overlap no busy interval, in input order."""
    free, _ = partition(slots, busy, tz=tz)
    return free


def find_conflicts(slot: Slot, busy: Iterable[BusyInterval], tz: str = "UTC") -> List[BusyInterval]:
    """Busy intervals a single slot runs into."""
    return ConflictFilter(busy, tz=tz).conflicts_for(slot)
