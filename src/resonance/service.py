"""Service context wiring the ledger, session machine and event bus.

Hosts (UI, background worker) hold one :class:`TrackingService` and reach
every component through it; nothing in the engine is a process-wide global.
"""

from __future__ import annotations

from datetime import tzinfo

import structlog
from pydantic import BaseModel

from resonance.activity.machine import ActivitySessionMachine
from resonance.config import Settings, get_settings
from resonance.errors import PersistenceError
from resonance.events import EventBus
from resonance.logger import setup_logging
from resonance.models import ActivityRecord, MoodSample
from resonance.mood.ledger import MoodLedger
from resonance.providers.base import HealthDataProvider, PedometerProvider
from resonance.storage.gateway import PersistenceGateway, create_gateway
from resonance.streaming.pipeline import IngestPipeline, session_consumer
from resonance.temporal import Clock, TemporalAggregator

logger = structlog.get_logger(__name__)


class CompletedActivity(BaseModel):
    record: ActivityRecord
    mood_sample: MoodSample | None = None


def combine_notes(before: str | None, after: str | None) -> str | None:
    """Join pre- and post-session notes as ``Before: …`` / ``After: …`` lines."""
    parts = []
    if before and before.strip():
        parts.append(f"Before: {before.strip()}")
    if after and after.strip():
        parts.append(f"After: {after.strip()}")
    return "\n".join(parts) or None


class TrackingService:
    """Owns one mood ledger and one activity session machine."""

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        settings: Settings | None = None,
        clock: Clock | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.events = EventBus()
        self.aggregator = TemporalAggregator(tz or self.settings.tzinfo, clock)
        self.ledger = MoodLedger(
            gateway,
            self.aggregator,
            self.events,
            neutral_mood=self.settings.neutral_mood,
            insight_window_days=self.settings.insight_window_days,
        )
        self.sessions = ActivitySessionMachine(
            gateway,
            self.events,
            aggregator=self.aggregator,
            data_point_cap=self.settings.data_point_cap,
        )

    def pedometer(self, source: HealthDataProvider) -> PedometerProvider:
        """Wrap a step-only *source* using the configured stride length."""
        return PedometerProvider(source, stride_length_m=self.settings.stride_length_m)

    def ingest_pipeline(self, maxsize: int = 1_000) -> IngestPipeline:
        """A pipeline already feeding the session machine."""
        pipeline = IngestPipeline(maxsize=maxsize)
        pipeline.add_consumer(session_consumer(self.sessions))
        return pipeline

    def complete_activity(
        self,
        mood_after: float | None = None,
        notes_before: str | None = None,
        notes_after: str | None = None,
    ) -> CompletedActivity:
        """Finish the active session and log a mood sample if mood moved enough.

        A sample is logged when both moods are known and differ by more
        than ``settings.mood_delta_threshold``.

        If the store rejects either write, the record and sample are still
        kept in memory and a :class:`PersistenceError` is raised afterwards
        with the :class:`CompletedActivity` on ``result``.
        """
        notes = combine_notes(notes_before, notes_after)
        failure: PersistenceError | None = None
        try:
            record = self.sessions.finish(mood_after=mood_after, notes=notes)
        except PersistenceError as exc:
            record = exc.result
            failure = exc

        sample = None
        delta = record.mood_delta
        if delta is not None and abs(delta) > self.settings.mood_delta_threshold:
            try:
                sample = self.ledger.record(
                    value=record.mood_after,
                    tag=record.kind.mood_tag,
                    note=f"After {record.display_name}: {notes or 'Mood improved'}",
                )
            except PersistenceError as exc:
                sample = exc.result
                failure = failure or exc
            logger.info(
                "tracking_service.mood_logged",
                record_id=record.id,
                sample_id=sample.id,
                delta=round(delta, 1),
            )

        completed = CompletedActivity(record=record, mood_sample=sample)
        if failure is not None:
            raise PersistenceError(
                f"activity {record.id} completed but not fully saved: {failure}",
                result=completed,
            ) from failure
        return completed

    def close(self) -> None:
        self.gateway.close()


def create_service(
    settings: Settings | None = None,
    gateway: PersistenceGateway | None = None,
    clock: Clock | None = None,
) -> TrackingService:
    """Build a :class:`TrackingService` from settings.

    The gateway defaults to the one selected by ``settings.database_url``;
    logging is configured from ``settings.log_level``.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)
    return TrackingService(
        gateway or create_gateway(settings),
        settings=settings,
        clock=clock,
    )
