"""Calorie and pace estimation — pure functions."""

from __future__ import annotations

from resonance.errors import InvalidInputError
from resonance.models import ActivityKind

# kcal per minute before heart-rate adjustment
BASE_CALORIES_PER_MINUTE: dict[ActivityKind, float] = {
    ActivityKind.BREATHE: 1.5,
    ActivityKind.MEDITATE: 1.5,
    ActivityKind.JOURNAL: 1.8,
    ActivityKind.VOICE_NOTE: 1.8,
    ActivityKind.MUSIC: 1.2,
    ActivityKind.PODCAST: 1.2,
    ActivityKind.CALL_FRIEND: 1.5,
    ActivityKind.WALK: 4.0,
    ActivityKind.STRETCH: 2.5,
    ActivityKind.DANCE: 6.0,
    ActivityKind.EXERCISE: 8.0,
    ActivityKind.WORKOUT: 8.0,
    ActivityKind.CUSTOM: 3.0,
}

# (exclusive lower bound in bpm, multiplier), highest first
_HEART_RATE_STEPS: tuple[tuple[float, float], ...] = (
    (140.0, 1.5),
    (120.0, 1.3),
    (100.0, 1.1),
)

DEFAULT_STRIDE_LENGTH_M = 0.762


def heart_rate_multiplier(avg_heart_rate: float | None) -> float:
    if avg_heart_rate is None:
        return 1.0
    for threshold, multiplier in _HEART_RATE_STEPS:
        if avg_heart_rate > threshold:
            return multiplier
    return 1.0


def estimate_calories(
    kind: ActivityKind,
    duration: float,
    avg_heart_rate: float | None = None,
) -> float:
    """Estimate kcal burned over *duration* seconds of *kind*.

    ``base_rate(kind) * minutes * heart_rate_multiplier(avg_heart_rate)``
    """
    if duration < 0:
        raise InvalidInputError(f"duration must be non-negative, got {duration}")
    base = BASE_CALORIES_PER_MINUTE[ActivityKind(kind)]
    return base * (duration / 60.0) * heart_rate_multiplier(avg_heart_rate)


def pace_minutes_per_km(elapsed_seconds: float, distance_m: float) -> float | None:
    """Minutes per kilometre, or ``None`` unless both inputs are positive."""
    if elapsed_seconds <= 0 or distance_m <= 0:
        return None
    return (elapsed_seconds / 60.0) / (distance_m / 1000.0)


def distance_from_steps(steps: int, stride_length_m: float = DEFAULT_STRIDE_LENGTH_M) -> float:
    """Approximate walked distance in metres from a pedometer step count."""
    return max(steps, 0) * stride_length_m
