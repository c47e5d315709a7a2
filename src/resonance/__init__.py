"""Resonance — mood and activity tracking engine."""

from resonance.activity import ActivitySessionMachine, SessionState
from resonance.errors import (
    InvalidInputError,
    NoActiveSessionError,
    PersistenceError,
    SessionAlreadyActiveError,
    TrackingError,
)
from resonance.events import EventBus, SampleAdded, SessionCancelled, SessionFinished, SessionStarted
from resonance.models import (
    ActivityDataPoint,
    ActivityKind,
    ActivityRecord,
    ActivityStats,
    HealthReading,
    MoodSample,
    MoodTag,
    Streak,
)
from resonance.mood import Insight, InsightKind, MoodLedger
from resonance.service import TrackingService, create_service
from resonance.storage import InMemoryGateway, PersistenceGateway
from resonance.temporal import NO_DATA, TemporalAggregator

__all__ = [
    "NO_DATA",
    "ActivityDataPoint",
    "ActivityKind",
    "ActivityRecord",
    "ActivitySessionMachine",
    "ActivityStats",
    "EventBus",
    "HealthReading",
    "InMemoryGateway",
    "Insight",
    "InsightKind",
    "InvalidInputError",
    "MoodLedger",
    "MoodSample",
    "MoodTag",
    "NoActiveSessionError",
    "PersistenceError",
    "PersistenceGateway",
    "SampleAdded",
    "SessionAlreadyActiveError",
    "SessionCancelled",
    "SessionFinished",
    "SessionStarted",
    "SessionState",
    "Streak",
    "TemporalAggregator",
    "TrackingError",
    "TrackingService",
    "create_service",
]
