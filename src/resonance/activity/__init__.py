"""Activity tracking — live sessions and derived estimates."""

from resonance.activity.estimator import (
    BASE_CALORIES_PER_MINUTE,
    distance_from_steps,
    estimate_calories,
    heart_rate_multiplier,
    pace_minutes_per_km,
)
from resonance.activity.machine import ActivitySessionMachine
from resonance.activity.session import ActivitySession, SessionState

__all__ = [
    "BASE_CALORIES_PER_MINUTE",
    "ActivitySession",
    "ActivitySessionMachine",
    "SessionState",
    "distance_from_steps",
    "estimate_calories",
    "heart_rate_multiplier",
    "pace_minutes_per_km",
]
