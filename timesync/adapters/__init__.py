"""
Adapters layer - Calendar integrations feeding busy intervals into the core.
"""

from .calendar_events import busy_intervals_from_events
from .google_calendar import GoogleCalendarClient
from .json_event_source import JsonEventSource

__all__ = ["GoogleCalendarClient", "JsonEventSource", "busy_intervals_from_events"]
