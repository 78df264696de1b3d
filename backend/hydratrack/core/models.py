"""Core Data Models - Pydantic models for type safety.

All models are immutable value objects with no behavior beyond validation.
"""

from datetime import datetime, timezone
from datetime import date as DateType
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
import uuid


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class ActivityLevel(str, Enum):
    """Self-reported exercise intensity, least to most active."""

    SEDENTARY = "sedentary"
    LIGHT = "light"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"

    @classmethod
    def parse(cls, value: "str | ActivityLevel") -> "ActivityLevel":
        """Parse a level case-insensitively.

        Raises:
            ValueError: If the value is not a known activity level
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Invalid activity level: {value!r}") from None


class WeatherCondition(str, Enum):
    """Ambient temperature band, coolest to hottest."""

    COOL = "cool"
    MILD = "mild"
    WARM = "warm"
    HOT = "hot"

    @classmethod
    def parse(cls, value: "str | WeatherCondition") -> "WeatherCondition":
        """Parse a condition case-insensitively. "cold" is accepted for cool.

        Raises:
            ValueError: If the value is not a known weather condition
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized == "cold":
            return cls.COOL
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Invalid weather condition: {value!r}") from None


class StatusColor(str, Enum):
    """Progress band color shown next to a day's total."""

    RED = "red"
    AMBER = "amber"
    EMERALD = "emerald"
    GREEN = "green"

    @property
    def hex(self) -> str:
        return _STATUS_HEX[self]


_STATUS_HEX = {
    StatusColor.RED: "#ef4444",
    StatusColor.AMBER: "#f59e0b",
    StatusColor.EMERALD: "#10b981",
    StatusColor.GREEN: "#059669",
}


class Profile(BaseModel):
    """Body, activity and weather profile with its derived daily goal."""

    weight: float = Field(ge=30, le=300, description="Body weight in kg")
    activity_level: ActivityLevel
    weather_condition: WeatherCondition
    daily_goal: int = Field(gt=0, description="Daily water target in ml")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("activity_level", mode="before")
    @classmethod
    def _parse_activity_level(cls, value):
        return ActivityLevel.parse(value)

    @field_validator("weather_condition", mode="before")
    @classmethod
    def _parse_weather_condition(cls, value):
        return WeatherCondition.parse(value)


class IntakeLogEntry(BaseModel):
    """A single drink logged by the user. Append-only."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    amount: float = Field(gt=0, le=1000, description="Amount in ml")
    logged_at: datetime = Field(default_factory=utcnow)
    owner_id: str = Field(min_length=1, description="ID of the user who logged it")


class DayAggregate(BaseModel):
    """All entries sharing one calendar day, with progress against the goal."""

    log_date: DateType
    total: float
    entries: list[IntakeLogEntry] = Field(default_factory=list, description="Most recent first")
    progress_pct: int = Field(le=100)
    status_color: StatusColor


class DailyHistory(BaseModel):
    """Last-N-days view with per-day aggregates and period metrics."""

    start_date: DateType
    end_date: DateType
    daily_goal: int
    days: list[DayAggregate] = Field(description="Days with entries, most recent first")
    days_logged: int
    days_goal_met: int
    total: float
    avg_daily_total: float


class User(BaseModel):
    """User record stored in Firestore."""

    email: str
    name: Optional[str] = Field(default=None, description="Display name")
    api_key_hash: str = Field(description="SHA256 hash of API key - never store plaintext")
    created_at: datetime = Field(default_factory=utcnow)
