"""
Domain-specific exception hierarchy for the scheduling core.
"""


class TimesyncError(Exception):
    """Base class for all application-level errors."""


class SchedulingError(TimesyncError):
    """Base class for validation failures of scheduling inputs."""


class InvalidRange(SchedulingError, ValueError):
    """Raised when a date range or interval ends before it starts."""


class InvalidWindow(SchedulingError, ValueError):
    """Raised when a daily time window is empty or a duration is not positive."""


class MalformedEntry(SchedulingError, ValueError):
    """Raised when a slot key, date, time or instant string cannot be parsed."""


class CalendarAPIError(TimesyncError):
    """Raised when calendar data cannot be fetched or parsed."""
