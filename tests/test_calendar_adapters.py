"""
Tests for calendar adapters.
"""

import json
import logging

import pendulum
import pytest
import requests

from timesync.adapters.calendar_events import busy_intervals_from_events
from timesync.adapters.google_calendar import GoogleCalendarClient
from timesync.adapters.json_event_source import JsonEventSource
from timesync.config import GoogleCalendarConfig
from timesync.domain.exceptions import CalendarAPIError


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.payload


class FakeSession:
    """Session returning canned responses and recording each GET."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.requests.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestEventParsing:
    """Tests for busy_intervals_from_events."""

    def test_timed_event(self):
        events = [{
            "id": "1",
            "start": {"dateTime": "2024-01-01T10:00:00+01:00"},
            "end": {"dateTime": "2024-01-01T11:00:00+01:00"},
        }]

        intervals = busy_intervals_from_events(events)

        assert len(intervals) == 1
        assert intervals[0].start == pendulum.datetime(2024, 1, 1, 9, tz="UTC")
        assert intervals[0].end == pendulum.datetime(2024, 1, 1, 10, tz="UTC")

    def test_event_time_zone_is_used_without_offset(self):
        events = [{
            "start": {"dateTime": "2024-01-01T10:00:00", "timeZone": "Europe/Berlin"},
            "end": {"dateTime": "2024-01-01T11:00:00", "timeZone": "Europe/Berlin"},
        }]

        intervals = busy_intervals_from_events(events)

        assert intervals[0].start == pendulum.datetime(2024, 1, 1, 9, tz="UTC")

    def test_all_day_event_blocks_whole_days(self):
        events = [{"start": {"date": "2024-01-01"}, "end": {"date": "2024-01-02"}}]

        intervals = busy_intervals_from_events(events, tz="Europe/Berlin")

        assert intervals[0].start == pendulum.datetime(2024, 1, 1, tz="Europe/Berlin")
        assert intervals[0].end == pendulum.datetime(2024, 1, 2, tz="Europe/Berlin")
        assert intervals[0].duration_minutes() == 24 * 60

    def test_plain_records(self):
        events = [{"start": "2024-01-01T09:00:00Z", "end": "2024-01-01T09:30:00Z"}]

        intervals = busy_intervals_from_events(events)

        assert intervals[0].duration_minutes() == 30

    def test_cancelled_and_free_events_are_ignored(self):
        events = [
            {"status": "cancelled", "start": "2024-01-01T09:00:00Z", "end": "2024-01-01T10:00:00Z"},
            {"transparency": "transparent", "start": "2024-01-01T11:00:00Z", "end": "2024-01-01T12:00:00Z"},
            {"status": None, "start": "2024-01-01T13:00:00Z", "end": "2024-01-01T14:00:00Z"},
        ]

        intervals = busy_intervals_from_events(events)

        assert [interval.start.hour for interval in intervals] == [13]

    def test_unparseable_events_are_skipped(self, caplog):
        events = [
            {"id": "no-end", "start": "2024-01-01T09:00:00Z"},
            {"id": "garbage", "start": "soon", "end": "later"},
            {"id": "reversed", "start": "2024-01-01T10:00:00Z", "end": "2024-01-01T09:00:00Z"},
            {"id": "empty", "start": {}, "end": {}},
            {"id": "ok", "start": "2024-01-01T09:00:00Z", "end": "2024-01-01T10:00:00Z"},
        ]

        with caplog.at_level(logging.WARNING):
            intervals = busy_intervals_from_events(events)

        assert len(intervals) == 1
        assert "Skipping calendar event no-end" in caplog.text
        assert "Skipping calendar event reversed" in caplog.text

    def test_wrongly_typed_events_are_skipped(self, caplog):
        """Non-object events and null or numeric boundaries are skipped, not fatal."""
        events = [
            "oops",
            None,
            {"id": "null-start", "start": None, "end": "2024-01-01T10:00:00Z"},
            {"id": "numeric-end", "start": "2024-01-01T09:00:00Z", "end": 1704103200},
            {"id": "odd-status", "status": 3, "start": "2024-01-01T11:00:00Z", "end": "2024-01-01T12:00:00Z"},
            {"id": "ok", "start": "2024-01-01T09:00:00Z", "end": "2024-01-01T10:00:00Z"},
        ]

        with caplog.at_level(logging.WARNING):
            intervals = busy_intervals_from_events(events)

        assert [interval.start.hour for interval in intervals] == [11, 9]
        assert "not an object" in caplog.text
        assert "Skipping calendar event null-start" in caplog.text
        assert "Skipping calendar event numeric-end" in caplog.text


class TestJsonEventSource:
    """Tests for the JSON file calendar source."""

    def test_reads_list(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps([
            {"start": "2024-01-01T09:00:00Z", "end": "2024-01-01T10:00:00Z"},
            {"start": "2024-01-05T09:00:00Z", "end": "2024-01-05T10:00:00Z"},
        ]))
        source = JsonEventSource(path)

        busy = source.get_busy_intervals(
            pendulum.datetime(2024, 1, 1, tz="UTC"),
            pendulum.datetime(2024, 1, 2, tz="UTC"),
        )

        assert len(busy) == 1
        assert busy[0].start == pendulum.datetime(2024, 1, 1, 9, tz="UTC")

    def test_reads_calendar_api_response(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text(json.dumps({
            "items": [{"start": {"date": "2024-01-01"}, "end": {"date": "2024-01-02"}}],
        }))

        assert len(JsonEventSource(path).events) == 1

    def test_missing_file(self, tmp_path):
        source = JsonEventSource(tmp_path / "missing.json")

        with pytest.raises(CalendarAPIError, match="not found"):
            source.get_busy_intervals(pendulum.now(), pendulum.now().add(days=1))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text("{not json")

        with pytest.raises(CalendarAPIError, match="Could not read events"):
            JsonEventSource(path).events

    def test_wrong_shape(self, tmp_path):
        path = tmp_path / "events.json"
        path.write_text('"just a string"')

        with pytest.raises(CalendarAPIError, match="list of events"):
            JsonEventSource(path).events


class TestGoogleCalendarClient:
    """Tests for the Google Calendar client."""

    START = pendulum.datetime(2024, 1, 1, tz="UTC")
    END = pendulum.datetime(2024, 1, 3, tz="UTC")

    def test_requires_token(self):
        with pytest.raises(CalendarAPIError):
            GoogleCalendarClient(access_token="")

    def test_list_events_request(self):
        session = FakeSession([FakeResponse({"items": [{"id": "a"}]})])
        client = GoogleCalendarClient("token-123", calendar_id="team@example.com", session=session)

        events = client.list_events(self.START, self.END)

        assert events == [{"id": "a"}]
        request = session.requests[0]
        assert request["url"] == (
            "https://www.googleapis.com/calendar/v3/calendars/team%40example.com/events"
        )
        assert request["headers"]["Authorization"] == "Bearer token-123"
        assert request["params"]["timeMin"] == "2024-01-01T00:00:00Z"
        assert request["params"]["timeMax"] == "2024-01-03T00:00:00Z"
        assert request["params"]["singleEvents"] == "true"
        assert "pageToken" not in request["params"]

    def test_pagination(self):
        session = FakeSession([
            FakeResponse({"items": [{"id": "a"}], "nextPageToken": "p2"}),
            FakeResponse({"items": [{"id": "b"}]}),
        ])
        client = GoogleCalendarClient("token", session=session)

        events = client.list_events(self.START, self.END)

        assert [event["id"] for event in events] == ["a", "b"]
        assert session.requests[1]["params"]["pageToken"] == "p2"
        assert "pageToken" not in session.requests[0]["params"]

    def test_http_error(self):
        session = FakeSession([FakeResponse(status_code=401)])
        client = GoogleCalendarClient("token", session=session)

        with pytest.raises(CalendarAPIError, match="Failed to fetch events"):
            client.list_events(self.START, self.END)

    def test_connection_error(self):
        session = FakeSession([requests.exceptions.ConnectionError("down")])
        client = GoogleCalendarClient("token", session=session)

        with pytest.raises(CalendarAPIError):
            client.list_events(self.START, self.END)

    def test_invalid_json(self):
        session = FakeSession([FakeResponse(invalid_json=True)])
        client = GoogleCalendarClient("token", session=session)

        with pytest.raises(CalendarAPIError, match="invalid JSON"):
            client.list_events(self.START, self.END)

    def test_get_busy_intervals(self):
        session = FakeSession([FakeResponse({"items": [
            {"start": {"dateTime": "2024-01-01T09:00:00Z"}, "end": {"dateTime": "2024-01-01T10:00:00Z"}},
            {"status": "cancelled", "start": {"dateTime": "2024-01-01T11:00:00Z"},
             "end": {"dateTime": "2024-01-01T12:00:00Z"}},
        ]})])
        client = GoogleCalendarClient("token", session=session)

        busy = client.get_busy_intervals(self.START, self.END)

        assert len(busy) == 1
        assert busy[0].duration_minutes() == 60

    def test_from_config(self, monkeypatch):
        monkeypatch.setenv("MY_TOKEN", "secret")

        client = GoogleCalendarClient.from_config(
            GoogleCalendarConfig(calendar_id="room@example.com", access_token_env="MY_TOKEN"),
            timezone="Europe/Berlin",
        )

        assert client.calendar_id == "room@example.com"
        assert client.timezone == "Europe/Berlin"
        assert client.headers["Authorization"] == "Bearer secret"

    def test_from_config_without_token(self, monkeypatch):
        monkeypatch.delenv("TIMESYNC_GOOGLE_TOKEN", raising=False)

        with pytest.raises(CalendarAPIError, match="TIMESYNC_GOOGLE_TOKEN"):
            GoogleCalendarClient.from_config(GoogleCalendarConfig())
