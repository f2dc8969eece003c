"""
Folding participant availability onto the candidate slots of a meeting.

Pure domain logic: the aggregator never mutates its inputs and keeps no
state between calls.
"""

from collections import OrderedDict
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from .models import (
    AvailabilityEntry,
    AvailabilityReport,
    DateSummary,
    Identity,
    ParticipantDetail,
    RankedSlot,
    Slot,
    Submission,
    TimeWindow,
)
from .timeutils import parse_entry

EntryLike = Union[AvailabilityEntry, Slot, date, str]


def submissions_from_pairs(pairs: Iterable[Tuple[Identity, EntryLike]]) -> List[Submission]:
    """
    Group flat ``(identity, entry)`` pairs into one submission per identity.

    All pairs of an identity form a single snapshot. Submissions come out in
    order of each identity's first pair.

    Raises:
        MalformedEntry: If an entry string cannot be parsed
    """
    grouped: "OrderedDict[Identity, List[AvailabilityEntry]]" = OrderedDict()

    for identity, raw_entry in pairs:
        grouped.setdefault(identity, []).append(parse_entry(raw_entry))

    return [Submission(identity=identity, entries=tuple(entries)) for identity, entries in grouped.items()]


class AvailabilityAggregator:
    """
    Counts participant coverage per slot and ranks slots by consensus.

    Algorithm:
    1. Initialize every universe slot to zero, keyed by its canonical key
    2. Group submissions by identity; a later submission replaces an earlier one
    3. Resolve each identity's entries to a set of covered universe keys
    4. Fold those sets into counts and participant details
    5. Sort by count descending, ties kept in universe order

    Because step 2 happens before any counting, aggregating the same
    submissions again (or receiving duplicates out of order) never
    double-counts.
    """

    def __init__(self, window: Optional[TimeWindow] = None):
        """
        Args:
            window: The meeting's daily window, used for bare-date entries.
                Without it a bare date covers every universe slot on that date.
        """
        self.window = window

    def aggregate(self, universe: Iterable[Slot], submissions: Iterable[Submission]) -> List[RankedSlot]:
        """
        Rank the universe by how many participants declared each slot available.

        Entries naming slots outside the universe are ignored.
        """
        ranked: "OrderedDict[str, RankedSlot]" = OrderedDict()
        keys_by_date: Dict[date, List[str]] = {}

        for slot in universe:
            if slot.key in ranked:
                continue
            ranked[slot.key] = RankedSlot(slot=slot)
            keys_by_date.setdefault(slot.date, []).append(slot.key)

        latest = self.latest_submissions(submissions)

        for submission in latest.values():
            covered = self._covered_keys(submission.entries, ranked, keys_by_date)
            detail = ParticipantDetail(
                identity=submission.identity,
                display_name=submission.display_name,
            )
            for key in covered:
                ranked[key].participant_count += 1
                ranked[key].participant_details.append(detail)

        # sorted() is stable, so equal counts keep universe order
        return sorted(ranked.values(), key=lambda item: -item.participant_count)

    @staticmethod
    def latest_submissions(submissions: Iterable[Submission]) -> "OrderedDict[Identity, Submission]":
        """
        Last submission per identity wins.

        Identities keep the position of their first submission.
        """
        latest: "OrderedDict[Identity, Submission]" = OrderedDict()
        for submission in submissions:
            latest[submission.identity] = submission
        return latest

    def _covered_keys(
        self,
        entries: Sequence[AvailabilityEntry],
        ranked: Dict[str, RankedSlot],
        keys_by_date: Dict[date, List[str]],
    ) -> List[str]:
        """Universe keys an identity's entries cover, each at most once, in universe order."""
        covered: Set[str] = set()

        for entry in entries:
            if entry.is_whole_day:
                for key in keys_by_date.get(entry.date, []):
                    slot = ranked[key].slot
                    if self.window is None or self.window.contains(slot.start_time, slot.end_time):
                        covered.add(key)
            else:
                key = entry.slot.key
                if key in ranked:
                    covered.add(key)

        return [key for key in ranked if key in covered]


def aggregate(
    universe: Iterable[Slot],
    submissions: Iterable[Submission],
    window: Optional[TimeWindow] = None,
) -> List[RankedSlot]:
    """Rank slots by participant count. See ``AvailabilityAggregator``."""
    return AvailabilityAggregator(window=window).aggregate(universe, submissions)


def summarize_by_date(submissions: Iterable[Submission]) -> List[DateSummary]:
    """
    Count distinct participants per date, using each identity's latest submission.

    Dates come out in ascending order.
    """
    latest = AvailabilityAggregator.latest_submissions(submissions)
    identities_by_date: Dict[date, Set[Identity]] = {}

    for identity, submission in latest.items():
        for entry in submission.entries:
            identities_by_date.setdefault(entry.date, set()).add(identity)

    return [
        DateSummary(date=day, participant_count=len(identities))
        for day, identities in sorted(identities_by_date.items())
    ]


def best_slots(ranked: Sequence[RankedSlot], limit: Optional[int] = None) -> List[RankedSlot]:
    """Top ranked slots that at least one participant can attend."""
    candidates = [item for item in ranked if item.participant_count > 0]
    if limit is not None:
        return candidates[:limit]
    return candidates


def build_report(
    universe: Iterable[Slot],
    submissions: Iterable[Submission],
    window: Optional[TimeWindow] = None,
    invited: Optional[int] = None,
) -> AvailabilityReport:
    """Ranked slots together with per-date counts and response figures."""
    submissions = list(submissions)
    latest = AvailabilityAggregator.latest_submissions(submissions)

    return AvailabilityReport(
        ranked_slots=aggregate(universe, submissions, window=window),
        by_date=summarize_by_date(submissions),
        responded=len(latest),
        invited=invited,
    )
