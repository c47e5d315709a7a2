"""Pydantic models shared across the engine."""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from resonance.errors import InvalidInputError

MOOD_MIN = 1.0
MOOD_MAX = 10.0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_mood(value: Any, *, field: str = "mood") -> float:
    """Coerce *value* to a float inside [1, 10] or raise :class:`InvalidInputError`."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be numeric, got {value!r}")
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{field} must be numeric, got {value!r}") from exc
    if math.isnan(v) or not MOOD_MIN <= v <= MOOD_MAX:
        raise InvalidInputError(f"{field} must be within [{MOOD_MIN:g}, {MOOD_MAX:g}], got {v}")
    return v


# ── Enums ─────────────────────────────────────────────────────


class MoodTag(str, Enum):
    """Closed set of context labels a user can attach to a check-in."""

    WORK = "work"
    RELATIONSHIP = "relationship"
    HEALTH = "health"
    SLEEP = "sleep"
    FAMILY = "family"
    MONEY = "money"
    GENERAL = "general"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ActivityKind(str, Enum):
    """Trackable activity types.  ``CUSTOM`` carries a free-text label."""

    # Visual
    BREATHE = "breathe"
    JOURNAL = "journal"
    MEDITATE = "meditate"
    EXERCISE = "exercise"
    # Auditory
    MUSIC = "music"
    PODCAST = "podcast"
    CALL_FRIEND = "call_friend"
    VOICE_NOTE = "voice_note"
    # Kinesthetic
    WALK = "walk"
    STRETCH = "stretch"
    DANCE = "dance"
    WORKOUT = "workout"

    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def suggested_duration(self) -> float:
        """Suggested session length in seconds."""
        return _SUGGESTED_DURATION[self]

    @property
    def mood_tag(self) -> MoodTag:
        """Context tag used when a session logs a correlated mood sample."""
        return _MOOD_TAG.get(self, MoodTag.GENERAL)

    @property
    def tracks_distance(self) -> bool:
        return self in _DISTANCE_KINDS


_SUGGESTED_DURATION: dict[ActivityKind, float] = {
    ActivityKind.BREATHE: 180,
    ActivityKind.JOURNAL: 300,
    ActivityKind.MEDITATE: 600,
    ActivityKind.EXERCISE: 1800,
    ActivityKind.MUSIC: 900,
    ActivityKind.PODCAST: 1800,
    ActivityKind.CALL_FRIEND: 600,
    ActivityKind.VOICE_NOTE: 120,
    ActivityKind.WALK: 900,
    ActivityKind.STRETCH: 300,
    ActivityKind.DANCE: 600,
    ActivityKind.WORKOUT: 2700,
    ActivityKind.CUSTOM: 600,
}

_MOOD_TAG: dict[ActivityKind, MoodTag] = {
    ActivityKind.EXERCISE: MoodTag.HEALTH,
    ActivityKind.WORKOUT: MoodTag.HEALTH,
    ActivityKind.WALK: MoodTag.HEALTH,
    ActivityKind.STRETCH: MoodTag.HEALTH,
    ActivityKind.DANCE: MoodTag.HEALTH,
    ActivityKind.CALL_FRIEND: MoodTag.RELATIONSHIP,
    ActivityKind.BREATHE: MoodTag.SLEEP,
    ActivityKind.MEDITATE: MoodTag.SLEEP,
}

_DISTANCE_KINDS = frozenset(
    {ActivityKind.WALK, ActivityKind.EXERCISE, ActivityKind.WORKOUT, ActivityKind.DANCE}
)


# ── Mood ──────────────────────────────────────────────────────


class MoodSample(BaseModel):
    """A single user check-in.  Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = Field(default_factory=_utcnow)
    value: float
    tag: MoodTag | None = None
    note: str | None = None

    @field_validator("value", mode="before")
    @classmethod
    def _value_in_range(cls, v: Any) -> float:
        return validate_mood(v, field="value")


class Streak(BaseModel):
    """Consecutive-day check-in counter."""

    model_config = ConfigDict(frozen=True)

    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    last_check_in_date: date | None = None

    @model_validator(mode="after")
    def _longest_covers_current(self) -> Streak:
        if self.longest_streak < self.current_streak:
            raise InvalidInputError(
                f"longest_streak {self.longest_streak} < current_streak {self.current_streak}"
            )
        return self


# ── Activity ──────────────────────────────────────────────────


class ActivityDataPoint(BaseModel):
    """One live-chart sample captured during a session."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    heart_rate: float | None = None
    distance: float | None = None  # metres, session-relative
    pace: float | None = None  # minutes per km


class ActivityRecord(BaseModel):
    """A finished, persisted activity session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime  # session start
    kind: ActivityKind
    custom_label: str | None = None
    duration: float = Field(ge=0)  # seconds
    heart_rate_avg: float | None = None
    heart_rate_max: float | None = None
    heart_rate_min: float | None = None
    calories: float | None = None
    distance: float | None = None  # metres
    steps: int | None = None
    mood_before: float | None = None
    mood_after: float | None = None
    notes: str | None = None

    @field_validator("mood_before", "mood_after", mode="before")
    @classmethod
    def _mood_in_range(cls, v: Any) -> float | None:
        return None if v is None else validate_mood(v)

    @property
    def display_name(self) -> str:
        if self.kind is ActivityKind.CUSTOM:
            return self.custom_label or "Activity"
        return self.kind.label

    @property
    def formatted_duration(self) -> str:
        minutes, seconds = divmod(int(self.duration), 60)
        if minutes > 0:
            return f"{minutes}m {seconds}s"
        return f"{seconds}s"

    @property
    def mood_delta(self) -> float | None:
        if self.mood_before is None or self.mood_after is None:
            return None
        return self.mood_after - self.mood_before


class ActivityStats(BaseModel):
    """Aggregate of finished sessions of one kind over a window."""

    kind: ActivityKind
    count: int = 0
    total_duration: float = 0.0
    average_duration: float = 0.0


# ── Provider push ─────────────────────────────────────────────


class HealthReading(BaseModel):
    """A periodic reading pushed by the health-data provider.

    ``steps`` and ``distance`` are absolute device counters; the session
    machine converts them to session-relative deltas.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    heart_rate: float | None = None
    steps: int | None = None
    distance: float | None = None  # metres
