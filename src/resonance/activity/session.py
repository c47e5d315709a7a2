"""Transient state of one in-progress activity session."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from resonance.models import ActivityDataPoint, ActivityKind

DEFAULT_DATA_POINT_CAP = 100


class SessionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    FINISHED = "finished"
    CANCELLED = "cancelled"


@dataclass
class ActivitySession:
    """Live aggregates for the active session.  Never persisted."""

    kind: ActivityKind
    started_at: datetime
    custom_label: str | None = None
    mood_before: float | None = None
    baseline_steps: int = 0
    baseline_distance: float = 0.0
    data_point_cap: int = DEFAULT_DATA_POINT_CAP

    state: SessionState = SessionState.ACTIVE
    heart_rate_samples: list[float] = field(default_factory=list)
    live_steps: int = 0
    live_distance: float = 0.0  # metres
    live_pace: float = 0.0  # minutes per km
    current_heart_rate: float = 0.0
    ingested: int = 0
    _data_points: deque[ActivityDataPoint] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._data_points = deque(maxlen=self.data_point_cap)

    @property
    def data_points(self) -> list[ActivityDataPoint]:
        """Most recent chart points, oldest first."""
        return list(self._data_points)

    def append_point(self, point: ActivityDataPoint) -> None:
        self._data_points.append(point)

    def heart_rate_stats(self) -> tuple[float | None, float | None, float | None]:
        """``(avg, max, min)`` over every ingested heart rate."""
        hr = self.heart_rate_samples
        if not hr:
            return None, None, None
        return sum(hr) / len(hr), max(hr), min(hr)

    def elapsed(self, at: datetime) -> float:
        return max((at - self.started_at).total_seconds(), 0.0)
