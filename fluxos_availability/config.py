"""
Availability engine configuration.

Scoring heuristics live in one overridable object so deployments can tune
them without touching the algorithm. Defaults reproduce the production
behaviour exactly.
"""

from dataclasses import dataclass, field

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import AvailabilityConfigError, InvalidInputError
from .timewindow import parse_hhmm


@dataclass(frozen=True)
class ScoringWeights:
    """Weights and thresholds used by the slot scorer.

    Hour buckets are half-open ``(start_hour, end_hour)`` ranges evaluated
    against the UTC hour of the slot start.

    Example:
        ```python
        weights = ScoringWeights(morning_bonus=40, friday_bonus=0)
        engine = AvailabilityEngine(source, provider, AvailabilityConfig(weights=weights))
        ```
    """

    base_score: int = 50

    morning_hours: tuple[int, int] = (9, 12)
    morning_bonus: int = 30
    early_afternoon_hours: tuple[int, int] = (13, 15)
    early_afternoon_bonus: int = 20
    late_afternoon_hours: tuple[int, int] = (15, 17)
    late_afternoon_bonus: int = 10

    wide_gap_seconds: int = 3600
    wide_gap_bonus: int = 20
    narrow_gap_seconds: int = 1800
    narrow_gap_bonus: int = 10

    midweek_bonus: int = 10
    friday_bonus: int = 5

    excellent_threshold: int = 80
    good_threshold: int = 60

    def __post_init__(self) -> None:
        """Validate weights after initialization."""
        if not 0 <= self.base_score <= 100:
            raise AvailabilityConfigError("base_score must be between 0 and 100")

        for name in ("morning_hours", "early_afternoon_hours", "late_afternoon_hours"):
            start, end = getattr(self, name)
            if not 0 <= start < end <= 24:
                raise AvailabilityConfigError(f"{name} must satisfy 0 <= start < end <= 24")

        if self.narrow_gap_seconds > self.wide_gap_seconds:
            raise AvailabilityConfigError("narrow_gap_seconds must be <= wide_gap_seconds")

        if self.good_threshold > self.excellent_threshold:
            raise AvailabilityConfigError("good_threshold must be <= excellent_threshold")


@dataclass(frozen=True)
class AvailabilityConfig:
    """
    Configuration for AvailabilityEngine.

    Attributes:
        slot_step_seconds: Distance between consecutive candidate starts (default: 1800)
        result_limit: Maximum number of ranked slots returned (default: 10)
        default_preferred_start: Daily window start, "HH:MM" (default: "09:00")
        default_preferred_end: Daily window end, "HH:MM" (default: "17:00")
        default_buffer_minutes: Margin around owner events (default: 15)
        conflict_context_seconds: Extra context fetched around a proposed
            meeting when checking conflicts (default: 3600)
        search_horizon_days: Days searched for alternatives after a conflict (default: 7)
        event_fetch_limit: Max events requested from the event source (default: 100)
        fetch_timeout: Seconds allowed per collaborator call (default: 15.0)
        weights: Scoring weights
    """

    slot_step_seconds: int = 1800
    result_limit: int = 10
    default_preferred_start: str = "09:00"
    default_preferred_end: str = "17:00"
    default_buffer_minutes: int = 15
    conflict_context_seconds: int = 3600
    search_horizon_days: int = 7
    event_fetch_limit: int = 100
    fetch_timeout: float = 15.0
    weights: ScoringWeights = field(default_factory=ScoringWeights)

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.slot_step_seconds <= 0:
            raise AvailabilityConfigError("slot_step_seconds must be greater than 0")

        if self.result_limit <= 0:
            raise AvailabilityConfigError("result_limit must be greater than 0")

        if self.default_buffer_minutes < 0:
            raise AvailabilityConfigError("default_buffer_minutes must be non-negative")

        if self.conflict_context_seconds < 0:
            raise AvailabilityConfigError("conflict_context_seconds must be non-negative")

        if self.search_horizon_days <= 0:
            raise AvailabilityConfigError("search_horizon_days must be greater than 0")

        if self.event_fetch_limit <= 0:
            raise AvailabilityConfigError("event_fetch_limit must be greater than 0")

        if self.fetch_timeout <= 0:
            raise AvailabilityConfigError("fetch_timeout must be greater than 0")

        for name in ("default_preferred_start", "default_preferred_end"):
            try:
                parse_hhmm(getattr(self, name))
            except InvalidInputError as e:
                raise AvailabilityConfigError(f"{name}: {e.message}") from e


class CalendarServiceSettings(BaseSettings):
    """Settings for the calendar microservice transport adapter.

    Read from ``CALENDAR_SERVICE_*`` environment variables or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="CALENDAR_SERVICE_",
        env_file=".env",
        extra="ignore",
    )

    base_url: str = "http://localhost:8010"
    api_key: str | None = None
    # Event and free/busy calls
    timeout: float = Field(default=15.0, gt=0)
    # Calendar listing is cheaper
    calendars_timeout: float = Field(default=10.0, gt=0)
    verify_ssl: bool = True

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slash from base_url."""
        return v.rstrip("/")
