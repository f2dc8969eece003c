"""
Calendar source that reads events from a local JSON file.

Useful for offline runs and tests, without any calendar account.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval
from ..domain.timeutils import overlaps
from .calendar_events import busy_intervals_from_events

logger = logging.getLogger(__name__)


class JsonEventSource:
    """
    Serves busy intervals from a JSON file.

    The file holds either a list of events or a Calendar API response with
    an ``items`` list. Events use the Calendar API shape or plain
    ``{"start": "...", "end": "..."}`` instants.
    """

    def __init__(self, path: Path, timezone: str = "UTC"):
        self.path = Path(path)
        self.timezone = timezone
        self._events: Optional[List[Dict[str, Any]]] = None

    @property
    def events(self) -> List[Dict[str, Any]]:
        if self._events is None:
            self._events = self._load_events()
        return self._events

    def _load_events(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise CalendarAPIError(f"Event file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CalendarAPIError(f"Could not read events from {self.path}: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise CalendarAPIError(f"Event file {self.path} must contain a list of events")

        logger.debug("Loaded %d events from %s", len(data), self.path)
        return data

    def get_busy_intervals(self, start: datetime, end: datetime) -> List[BusyInterval]:
        """Busy intervals from the file that touch the requested span."""
        intervals = busy_intervals_from_events(self.events, tz=self.timezone)
        return [
            interval for interval in intervals
            if overlaps(interval.start, interval.end, start, end)
        ]
