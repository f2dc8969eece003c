"""
Conversion of calendar event payloads into busy intervals.

Accepts Google Calendar event resources (``start.dateTime`` / ``start.date``)
and plain ``{"start": "...", "end": "..."}`` records.
"""

import logging
from datetime import time
from typing import Any, Dict, Iterable, List, Union

from pendulum import DateTime

from ..domain.exceptions import MalformedEntry, SchedulingError
from ..domain.models import BusyInterval
from ..domain.timeutils import combine, parse_date, parse_instant

logger = logging.getLogger(__name__)

# Events in these states do not block time
IGNORED_STATUSES = {"cancelled"}
IGNORED_TRANSPARENCY = {"transparent"}


def busy_intervals_from_events(events: Iterable[Dict[str, Any]], tz: str = "UTC") -> List[BusyInterval]:
    """
    Turn calendar events into busy intervals.

    All-day events block from midnight of their start date to midnight of
    their (exclusive) end date in ``tz``. Events that cannot be parsed are
    skipped with a warning.
    """
    intervals: List[BusyInterval] = []

    for event in events:
        if not isinstance(event, dict):
            logger.warning("Skipping calendar event %r: not an object", event)
            continue
        if str(event.get("status") or "").lower() in IGNORED_STATUSES:
            continue
        if str(event.get("transparency") or "").lower() in IGNORED_TRANSPARENCY:
            continue

        try:
            start = _parse_boundary(event["start"], tz)
            end = _parse_boundary(event["end"], tz)
            intervals.append(BusyInterval(start=start, end=end))
        except (KeyError, TypeError, SchedulingError) as exc:
            logger.warning("Skipping calendar event %s: %s", event.get("id", "<no id>"), exc)
            continue

    return intervals


def _parse_boundary(boundary: Union[str, Dict[str, Any]], tz: str) -> DateTime:
    if isinstance(boundary, str):
        return parse_instant(boundary, tz=tz)

    if not isinstance(boundary, dict):
        raise MalformedEntry(f"Invalid event boundary {boundary!r}")

    if boundary.get("dateTime"):
        return parse_instant(boundary["dateTime"], tz=boundary.get("timeZone") or tz)

    if boundary.get("date"):
        return combine(parse_date(boundary["date"]), time(0, 0), tz)

    raise KeyError("dateTime")
