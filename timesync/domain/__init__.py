"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .aggregator import (
    AvailabilityAggregator,
    aggregate,
    best_slots,
    build_report,
    submissions_from_pairs,
    summarize_by_date,
)
from .conflicts import ConflictFilter, filter_conflicting, find_conflicts, partition, slot_interval
from .exceptions import (
    CalendarAPIError,
    InvalidRange,
    InvalidWindow,
    MalformedEntry,
    SchedulingError,
    TimesyncError,
)
from .models import (
    AvailabilityEntry,
    AvailabilityReport,
    BusyInterval,
    DateRange,
    DateSummary,
    DayFilter,
    DurationUnit,
    Identity,
    IdentityKind,
    MeetingParameters,
    ParticipantDetail,
    RankedSlot,
    Slot,
    Submission,
    TimeWindow,
    to_minutes,
)
from .slot_generator import SlotSequence, generate_for, generate_slots, scheduled_interval

__all__ = [
    "AvailabilityAggregator",
    "AvailabilityEntry",
    "AvailabilityReport",
    "BusyInterval",
    "CalendarAPIError",
    "ConflictFilter",
    "DateRange",
    "DateSummary",
    "DayFilter",
    "DurationUnit",
    "Identity",
    "IdentityKind",
    "InvalidRange",
    "InvalidWindow",
    "MalformedEntry",
    "MeetingParameters",
    "ParticipantDetail",
    "RankedSlot",
    "SchedulingError",
    "Slot",
    "SlotSequence",
    "Submission",
    "TimeWindow",
    "TimesyncError",
    "aggregate",
    "best_slots",
    "build_report",
    "filter_conflicting",
    "find_conflicts",
    "generate_for",
    "generate_slots",
    "partition",
    "scheduled_interval",
    "slot_interval",
    "submissions_from_pairs",
    "summarize_by_date",
    "to_minutes",
]
