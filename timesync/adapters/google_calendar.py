"""
Google Calendar REST client for fetching busy times.
"""

import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pendulum
import requests

from ..domain.exceptions import CalendarAPIError
from ..domain.models import BusyInterval
from .calendar_events import busy_intervals_from_events

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """
    Client for Google Calendar event listing.

    Uses the ``/calendars/{id}/events`` endpoint with expanded recurring
    events. The access token is passed in explicitly; obtaining and
    refreshing it is the caller's concern.
    """

    CALENDAR_API_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    PAGE_SIZE = 250

    def __init__(
        self,
        access_token: str,
        calendar_id: str = "primary",
        timezone: str = "UTC",
        session: Optional[requests.Session] = None,
        timeout: int = 30,
    ):
        """
        Initialize the Calendar API client.

        Args:
            access_token: Valid OAuth bearer token with calendar read access
            calendar_id: Calendar to read, ``primary`` for the user's main calendar
            timezone: Zone used for all-day events and offset-less timestamps
            session: Optional requests session (injectable for tests)
            timeout: Request timeout in seconds
        """
        if not access_token:
            raise CalendarAPIError("A Google Calendar access token is required")

        self.calendar_id = calendar_id
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    @classmethod
    def from_config(cls, calendar_config, timezone: str = "UTC") -> "GoogleCalendarClient":
        """
        Build a client from a ``GoogleCalendarConfig``.

        Raises:
            CalendarAPIError: If the configured token variable is not set
        """
        token = os.environ.get(calendar_config.access_token_env, "")
        if not token:
            raise CalendarAPIError(
                f"Environment variable {calendar_config.access_token_env} holds no access token"
            )
        return cls(access_token=token, calendar_id=calendar_config.calendar_id, timezone=timezone)

    def list_events(self, start: datetime, end: datetime) -> List[Dict[str, Any]]:
        """
        List all events between two instants, following pagination.

        Raises:
            CalendarAPIError: If a request fails or returns invalid JSON
        """
        url = f"{self.CALENDAR_API_ENDPOINT}/calendars/{quote(self.calendar_id, safe='')}/events"
        params: Dict[str, Any] = {
            "timeMin": pendulum.instance(start, tz=self.timezone).to_iso8601_string(),
            "timeMax": pendulum.instance(end, tz=self.timezone).to_iso8601_string(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": self.PAGE_SIZE,
        }

        items: List[Dict[str, Any]] = []
        while True:
            try:
                response = self.session.get(url, headers=self.headers, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except requests.exceptions.RequestException as exc:
                raise CalendarAPIError(f"Failed to fetch events from Google Calendar: {exc}") from exc
            except ValueError as exc:
                raise CalendarAPIError(f"Google Calendar returned invalid JSON: {exc}") from exc

            items.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        logger.debug("Fetched %d events from calendar %s", len(items), self.calendar_id)
        return items

    def get_busy_intervals(self, start: datetime, end: datetime) -> List[BusyInterval]:
        """Busy intervals from the calendar's events between two instants."""
        return busy_intervals_from_events(self.list_events(start, end), tz=self.timezone)
