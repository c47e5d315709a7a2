"""Activity session state machine.

``IDLE → ACTIVE → (FINISHED | CANCELLED) → IDLE``.  At most one session is
active; finishing turns it into an immutable :class:`ActivityRecord`
appended to the records list, cancelling discards it.
"""

from __future__ import annotations

import math
import threading
from datetime import datetime
from typing import Any

import structlog

from resonance.activity.estimator import estimate_calories, pace_minutes_per_km
from resonance.activity.session import DEFAULT_DATA_POINT_CAP, ActivitySession, SessionState
from resonance.errors import (
    InvalidInputError,
    NoActiveSessionError,
    PersistenceError,
    SessionAlreadyActiveError,
)
from resonance.events import EventBus, SessionCancelled, SessionFinished, SessionStarted
from resonance.models import (
    ActivityDataPoint,
    ActivityKind,
    ActivityRecord,
    ActivityStats,
    HealthReading,
    validate_mood,
)
from resonance.storage.gateway import PersistenceGateway
from resonance.temporal import TemporalAggregator, to_local

logger = structlog.get_logger(__name__)


def _number(value: Any, field: str) -> float:
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be numeric, got {value!r}")
    try:
        v = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{field} must be numeric, got {value!r}") from exc
    if not math.isfinite(v):
        raise InvalidInputError(f"{field} must be finite, got {v}")
    return v


def _coerce_kind(kind: ActivityKind | str) -> ActivityKind:
    try:
        return ActivityKind(kind)
    except ValueError as exc:
        raise InvalidInputError(f"unknown activity kind {kind!r}") from exc


class ActivitySessionMachine:
    """Own the active session and the append-only list of finished records.

    Parameters
    ----------
    gateway : PersistenceGateway
        Records are loaded at construction and saved after every finish.
    events : EventBus | None
        Receives start / finish / cancel events.
    aggregator : TemporalAggregator | None
        Clock and local time zone.
    data_point_cap : int
        Size of the live chart buffer; oldest points are evicted first.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        events: EventBus | None = None,
        *,
        aggregator: TemporalAggregator | None = None,
        data_point_cap: int = DEFAULT_DATA_POINT_CAP,
    ) -> None:
        if data_point_cap <= 0:
            raise InvalidInputError(f"data_point_cap must be positive, got {data_point_cap}")
        self._gateway = gateway
        self._events = events or EventBus()
        self._aggregator = aggregator or TemporalAggregator()
        self._data_point_cap = data_point_cap
        self._lock = threading.RLock()

        self._session: ActivitySession | None = None
        self._records: list[ActivityRecord] = gateway.load_activity_records()

    # ── State ─────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return SessionState.IDLE if self._session is None else SessionState.ACTIVE

    @property
    def is_active(self) -> bool:
        return self._session is not None

    @property
    def active_session(self) -> ActivitySession | None:
        return self._session

    @property
    def records(self) -> list[ActivityRecord]:
        with self._lock:
            return list(self._records)

    def _require_active(self, operation: str) -> ActivitySession:
        if self._session is None:
            raise NoActiveSessionError(f"cannot {operation}: no activity session is active")
        return self._session

    def _at(self, at: datetime | None) -> datetime:
        if at is None:
            return self._aggregator.now()
        return to_local(at, self._aggregator.tz)

    # ── Transitions ───────────────────────────────────────────

    def start(
        self,
        kind: ActivityKind | str,
        custom_label: str | None = None,
        mood_before: float | None = None,
        initial_steps: int = 0,
        initial_distance: float = 0.0,
    ) -> ActivitySession:
        """Begin tracking.  Absolute step/distance readings become baselines."""
        with self._lock:
            if self._session is not None:
                raise SessionAlreadyActiveError(
                    f"a {self._session.kind.value} session is already active"
                )
            kind = _coerce_kind(kind)
            if mood_before is not None:
                mood_before = validate_mood(mood_before, field="mood_before")
            steps = _number(initial_steps, "initial_steps")
            distance = _number(initial_distance, "initial_distance")
            if steps < 0 or distance < 0:
                raise InvalidInputError("initial steps and distance must be non-negative")

            session = ActivitySession(
                kind=kind,
                started_at=self._aggregator.now(),
                custom_label=(custom_label or "").strip() or None,
                mood_before=mood_before,
                baseline_steps=int(steps),
                baseline_distance=distance,
                data_point_cap=self._data_point_cap,
            )
            self._session = session

        logger.info("session_machine.started", kind=kind.value, label=session.custom_label)
        self._events.publish(
            SessionStarted(kind=kind, custom_label=session.custom_label, started_at=session.started_at)
        )
        return session

    def ingest(
        self,
        heart_rate: float | None = None,
        steps: int | None = None,
        distance: float | None = None,
        *,
        at: datetime | None = None,
    ) -> ActivityDataPoint:
        """Fold one provider reading into the live aggregates.

        ``steps`` and ``distance`` are absolute device counters.  Exactly one
        chart point is appended per call whatever fields are present.
        """
        with self._lock:
            session = self._require_active("ingest")
            hr = None if heart_rate is None else _number(heart_rate, "heart_rate")
            if hr is not None and hr <= 0:
                raise InvalidInputError(f"heart_rate must be positive, got {hr}")
            abs_steps = None if steps is None else _number(steps, "steps")
            abs_distance = None if distance is None else _number(distance, "distance")
            now = self._at(at)

            if hr is not None:
                session.heart_rate_samples.append(hr)
                session.current_heart_rate = hr
            if abs_steps is not None:
                session.live_steps = int(abs_steps) - session.baseline_steps
            if abs_distance is not None:
                session.live_distance = abs_distance - session.baseline_distance
                pace = pace_minutes_per_km(session.elapsed(now), session.live_distance)
                if pace is not None:
                    session.live_pace = pace

            point = ActivityDataPoint(
                timestamp=now,
                heart_rate=hr,
                distance=session.live_distance if session.live_distance > 0 else None,
                pace=session.live_pace if session.live_pace > 0 else None,
            )
            session.append_point(point)
            session.ingested += 1
        return point

    def ingest_reading(self, reading: HealthReading) -> ActivityDataPoint:
        """Provider-callback form of :meth:`ingest`.

        Devices report a heart rate of ``0`` while the sensor has no contact;
        such a reading carries no heart rate but its counters still count.
        """
        hr = reading.heart_rate
        return self.ingest(
            heart_rate=hr if hr is not None and hr > 0 else None,
            steps=reading.steps,
            distance=reading.distance,
            at=reading.timestamp,
        )

    def finish(
        self,
        mood_after: float | None = None,
        notes: str | None = None,
        *,
        at: datetime | None = None,
    ) -> ActivityRecord:
        """Close the session and append its :class:`ActivityRecord`.

        Raises :class:`PersistenceError` (with the record attached) if the
        store rejects the write; the record stays in :attr:`records`.
        """
        with self._lock:
            session = self._require_active("finish")
            if mood_after is not None:
                mood_after = validate_mood(mood_after, field="mood_after")
            end = self._at(at)
            duration = session.elapsed(end)
            hr_avg, hr_max, hr_min = session.heart_rate_stats()

            record = ActivityRecord(
                timestamp=session.started_at,
                kind=session.kind,
                custom_label=session.custom_label,
                duration=duration,
                heart_rate_avg=hr_avg,
                heart_rate_max=hr_max,
                heart_rate_min=hr_min,
                calories=estimate_calories(session.kind, duration, hr_avg),
                distance=session.live_distance if session.live_distance > 0 else None,
                steps=session.live_steps if session.live_steps > 0 else None,
                mood_before=session.mood_before,
                mood_after=mood_after,
                notes=(notes or "").strip() or None,
            )
            session.state = SessionState.FINISHED
            self._session = None
            self._records.append(record)
            records = list(self._records)

        logger.info(
            "session_machine.finished",
            record_id=record.id,
            kind=record.kind.value,
            duration=round(record.duration, 1),
            calories=round(record.calories or 0.0, 1),
        )
        self._events.publish(SessionFinished(record=record))
        try:
            self._gateway.save_activity_records(records)
        except PersistenceError as exc:
            logger.error("session_machine.persist_failed", record_id=record.id, error=str(exc))
            raise PersistenceError(
                f"activity record {record.id} kept in memory but not saved: {exc}",
                result=record,
            ) from exc
        return record

    def cancel(self) -> ActivitySession:
        """Discard the active session without creating a record."""
        with self._lock:
            session = self._require_active("cancel")
            session.state = SessionState.CANCELLED
            self._session = None

        logger.info("session_machine.cancelled", kind=session.kind.value, ingested=session.ingested)
        self._events.publish(
            SessionCancelled(kind=session.kind, started_at=session.started_at, ingested=session.ingested)
        )
        return session

    # ── Live values ───────────────────────────────────────────

    def elapsed(self, at: datetime | None = None) -> float:
        """Seconds since the active session started (``0`` when idle)."""
        session = self._session
        return 0.0 if session is None else session.elapsed(self._at(at))

    def live_calories(self, at: datetime | None = None) -> float:
        """Running estimate using the latest heart rate (``0`` when idle)."""
        session = self._session
        if session is None:
            return 0.0
        hr = session.current_heart_rate or None
        return estimate_calories(session.kind, session.elapsed(self._at(at)), hr)

    # ── History ───────────────────────────────────────────────

    def recent_records(self, days: int = 7) -> list[ActivityRecord]:
        """Records started within the last ``days * 24h``, newest first."""
        return self._aggregator.recent_since(self.records, days)

    def todays_records(self) -> list[ActivityRecord]:
        today = self._aggregator.today()
        todays = [r for r in self.records if self._aggregator.day_of(r.timestamp) == today]
        return sorted(todays, key=lambda r: to_local(r.timestamp, self._aggregator.tz), reverse=True)

    def stats_for(self, kind: ActivityKind | str, days: int = 30) -> ActivityStats:
        kind = _coerce_kind(kind)
        matching = [r for r in self.recent_records(days) if r.kind is kind]
        total = sum(r.duration for r in matching)
        return ActivityStats(
            kind=kind,
            count=len(matching),
            total_duration=total,
            average_duration=total / len(matching) if matching else 0.0,
        )

    def duration_trend(self, days: int = 7) -> list[float]:
        """Mean session minutes per day, oldest first; ``0`` means no sessions."""
        return self._aggregator.daily_average_series(
            self.records, days, value_of=lambda r: r.duration / 60.0
        )
