"""
Configuration and request payload models using Pydantic.
"""

from datetime import date, time
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import (
    DateRange,
    DayFilter,
    DurationUnit,
    Identity,
    MeetingParameters,
    Submission,
    TimeWindow,
    to_minutes,
)
from .domain.timeutils import format_time, from_minutes, parse_date, parse_entry, parse_time


def _coerce_time(value: Any) -> time:
    """
    Parse a time of day from config input.

    YAML 1.1 reads unquoted values like 17:30 as base-60 integers (1050),
    which map straight back to minutes since midnight.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return from_minutes(value)
    return parse_time(value)


def _load_yaml_mapping(path: Path, kind: str) -> dict:
    """Read a YAML (or JSON) file that must hold a mapping at its root."""
    if not path.exists():
        raise FileNotFoundError(f"{kind} file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"{kind} file must contain a mapping at the root level.")

    return data


class MeetingDefaults(BaseModel):
    """Default meeting parameters used when a request leaves them out."""
    duration: Union[int, float] = 60
    duration_unit: DurationUnit = DurationUnit.MINUTES
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    day_filter: DayFilter = DayFilter.WEEKDAYS

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value: Any) -> time:
        """Accept ``HH:MM`` strings."""
        return _coerce_time(value)

    @field_validator("day_filter", mode="before")
    @classmethod
    def validate_day_filter(cls, value: Any) -> DayFilter:
        """Accept filter names and legacy numeric codes."""
        return DayFilter.from_code(value)

    @model_validator(mode="after")
    def validate_window(self) -> "MeetingDefaults":
        """Ensure the window opens before it closes and the duration is usable."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        to_minutes(self.duration, self.duration_unit)
        return self

    def duration_minutes(self) -> int:
        return to_minutes(self.duration, self.duration_unit)

    def window(self) -> TimeWindow:
        return TimeWindow(start_time=self.start_time, end_time=self.end_time)


class GoogleCalendarConfig(BaseModel):
    """Where to read the organizer's busy times from."""
    calendar_id: str = "primary"
    access_token_env: str = "TIMESYNC_GOOGLE_TOKEN"


class AppConfig(BaseModel):
    """Application configuration."""
    defaults: MeetingDefaults = Field(default_factory=MeetingDefaults)
    timezone: str = "UTC"
    google: GoogleCalendarConfig = Field(default_factory=GoogleCalendarConfig)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        return cls(**_load_yaml_mapping(config_path, "Config"))

    @classmethod
    def load_or_default(cls, config_path: Optional[Path]) -> "AppConfig":
        """Load the given config file, or fall back to built-in defaults if none exists."""
        path = config_path or get_default_config_path()
        if config_path is None and not path.exists():
            return cls()
        return cls.load_from_yaml(path)


class MeetingRequest(BaseModel):
    """
    Meeting parameters as supplied by a caller.

    Field parsing happens here; ordering rules (start before end, positive
    duration) are checked by ``to_parameters`` and raise the typed
    scheduling errors.
    """
    title: Optional[str] = None
    start_date: date
    end_date: date
    start_time: time = time(9, 0)
    end_time: time = time(17, 0)
    duration: Union[int, float] = 60
    duration_unit: DurationUnit = DurationUnit.MINUTES
    day_filter: DayFilter = DayFilter.ALL_DAYS
    participant_emails: List[str] = Field(default_factory=list)

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def validate_date(cls, value: Any) -> date:
        return parse_date(value)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time(cls, value: Any) -> time:
        return _coerce_time(value)

    @field_validator("day_filter", mode="before")
    @classmethod
    def validate_day_filter(cls, value: Any) -> DayFilter:
        return DayFilter.from_code(value)

    @field_validator("participant_emails")
    @classmethod
    def validate_participants(cls, value: List[str]) -> List[str]:
        """Lower-case and deduplicate emails, preserving order."""
        seen: set[str] = set()
        deduped: List[str] = []
        for email in value:
            key = email.strip().lower()
            if key and key not in seen:
                deduped.append(key)
                seen.add(key)
        return deduped

    @classmethod
    def from_defaults(cls, defaults: MeetingDefaults, **values: Any) -> "MeetingRequest":
        """Build a request, taking anything not given (or given as None) from the defaults."""
        merged = {
            "start_time": defaults.start_time,
            "end_time": defaults.end_time,
            "duration": defaults.duration,
            "duration_unit": defaults.duration_unit,
            "day_filter": defaults.day_filter,
        }
        merged.update({key: value for key, value in values.items() if value is not None})
        return cls(**merged)

    def to_parameters(self) -> MeetingParameters:
        """
        Validated domain parameters.

        Raises:
            InvalidRange: If start_date is after end_date
            InvalidWindow: If the window is empty or the duration not positive
        """
        return MeetingParameters(
            date_range=DateRange(start=self.start_date, end=self.end_date),
            window=TimeWindow(start_time=self.start_time, end_time=self.end_time),
            duration_minutes=to_minutes(self.duration, self.duration_unit),
            day_filter=self.day_filter,
        )

    def describe(self) -> str:
        return (
            f"{self.start_date.isoformat()} to {self.end_date.isoformat()}, "
            f"{format_time(self.start_time)}-{format_time(self.end_time)}, "
            f"{self.duration} {self.duration_unit.value}, {self.day_filter.value}"
        )


class SubmissionPayload(BaseModel):
    """
    One participant's availability as submitted.

    Exactly one of ``user_id``, ``email`` or ``token`` identifies the participant.
    Entries are slot keys or bare dates.
    """
    user_id: Optional[str] = None
    email: Optional[str] = None
    token: Optional[str] = None
    display_name: Optional[str] = None
    entries: List[str] = Field(default_factory=list)

    @field_validator("user_id", mode="before")
    @classmethod
    def validate_user_id(cls, value: Any) -> Optional[str]:
        return None if value is None else str(value)

    @field_validator("entries", mode="before")
    @classmethod
    def validate_entries(cls, value: Any) -> List[str]:
        """YAML turns bare dates into date objects; keep everything as strings."""
        if value is None:
            return []
        return [item.isoformat() if isinstance(item, date) else str(item) for item in value]

    @model_validator(mode="after")
    def validate_identity(self) -> "SubmissionPayload":
        """Ensure exactly one identity field is set."""
        given = [name for name in ("user_id", "email", "token") if getattr(self, name)]
        if len(given) != 1:
            raise ValueError(
                "A submission needs exactly one of user_id, email or token, "
                f"got {', '.join(given) if given else 'none'}"
            )
        return self

    def identity(self) -> Identity:
        if self.user_id:
            return Identity.user(self.user_id)
        if self.email:
            return Identity.email(self.email)
        return Identity.token(self.token)

    def to_submission(self) -> Submission:
        """
        Domain submission with parsed entries.

        Raises:
            MalformedEntry: If an entry is neither a slot key nor a date
        """
        return Submission(
            identity=self.identity(),
            entries=tuple(parse_entry(entry) for entry in self.entries),
            display_name=self.display_name,
        )


class AvailabilityPayload(BaseModel):
    """A meeting together with the availability collected for it."""
    meeting: MeetingRequest
    submissions: List[SubmissionPayload] = Field(default_factory=list)

    @classmethod
    def load_from_file(cls, path: Path) -> "AvailabilityPayload":
        """
        Load a payload from a YAML or JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the payload is invalid
        """
        return cls(**_load_yaml_mapping(path, "Availability"))

    def to_submissions(self) -> List[Submission]:
        return [payload.to_submission() for payload in self.submissions]


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
