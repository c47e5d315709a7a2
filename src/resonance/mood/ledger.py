"""The mood ledger owns the sample list and the streak.

Both are updated together under one lock on every insert; the streak is
advanced incrementally and never rebuilt from history.
"""

from __future__ import annotations

import statistics
import threading
from collections import Counter
from datetime import datetime
from typing import Any, Mapping

import structlog
from pydantic import ValidationError

from resonance.errors import InvalidInputError, PersistenceError
from resonance.events import EventBus, SampleAdded
from resonance.models import MoodSample, MoodTag, Streak, validate_mood
from resonance.mood.insights import Insight, generate_insight
from resonance.mood.streak import update_streak
from resonance.storage.gateway import PersistenceGateway
from resonance.temporal import TemporalAggregator

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_DAYS = 7


class MoodLedger:
    """Store mood samples and derive streak, average, trend and insights.

    Parameters
    ----------
    gateway : PersistenceGateway
        Backing store; samples and streak are loaded at construction.
    aggregator : TemporalAggregator
        Supplies the clock and local time zone for day bucketing.
    events : EventBus | None
        Receives a :class:`SampleAdded` after every insert.
    neutral_mood : float
        Returned by :meth:`average_mood` when the window is empty.  It is a
        display default, not a measurement.
    insight_window_days : int
        Window used by :meth:`generate_insight`.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        aggregator: TemporalAggregator | None = None,
        events: EventBus | None = None,
        *,
        neutral_mood: float = 5.0,
        insight_window_days: int = DEFAULT_WINDOW_DAYS,
    ) -> None:
        self._gateway = gateway
        self._aggregator = aggregator or TemporalAggregator()
        self._events = events or EventBus()
        self._neutral_mood = neutral_mood
        self._insight_window_days = insight_window_days
        self._lock = threading.RLock()

        self._samples: list[MoodSample] = gateway.load_mood_samples()
        self._streak: Streak = gateway.load_streak()
        logger.debug(
            "mood_ledger.loaded",
            samples=len(self._samples),
            current_streak=self._streak.current_streak,
        )

    # ── State ─────────────────────────────────────────────────

    @property
    def samples(self) -> list[MoodSample]:
        with self._lock:
            return list(self._samples)

    @property
    def streak(self) -> Streak:
        with self._lock:
            return self._streak

    def __len__(self) -> int:
        return len(self._samples)

    # ── Write ─────────────────────────────────────────────────

    def add_sample(self, sample: MoodSample | Mapping[str, Any]) -> MoodSample:
        """Append *sample*, advance the streak once, publish, then persist.

        Raises :class:`InvalidInputError` (nothing changed) for an invalid
        value, or :class:`PersistenceError` after the in-memory update if
        the store rejects the write.
        """
        if isinstance(sample, Mapping):
            try:
                sample = MoodSample.model_validate(sample)
            except ValidationError as exc:
                raise InvalidInputError(f"malformed mood sample: {exc.error_count()} error(s)") from exc
        elif not isinstance(sample, MoodSample):
            raise InvalidInputError(f"expected a MoodSample, got {type(sample).__name__}")
        # model_construct() skips validators
        validate_mood(sample.value, field="value")

        with self._lock:
            self._samples.append(sample)
            self._streak = update_streak(self._streak, self._aggregator.day_of(sample.timestamp))
            streak = self._streak
            samples = list(self._samples)

        logger.info(
            "mood_ledger.sample_added",
            sample_id=sample.id,
            value=sample.value,
            tag=sample.tag.value if sample.tag else None,
            current_streak=streak.current_streak,
        )
        self._events.publish(SampleAdded(sample=sample, streak=streak))
        self._persist(samples, streak, sample)
        return sample

    def record(
        self,
        value: float,
        tag: MoodTag | str | None = None,
        note: str | None = None,
        timestamp: datetime | None = None,
    ) -> MoodSample:
        """Build a sample from user input and add it."""
        if isinstance(tag, str) and not isinstance(tag, MoodTag):
            try:
                tag = MoodTag(tag.lower())
            except ValueError as exc:
                raise InvalidInputError(f"unknown mood tag {tag!r}") from exc
        return self.add_sample(
            MoodSample(
                timestamp=timestamp or self._aggregator.now(),
                value=value,
                tag=tag,
                note=note,
            )
        )

    def _persist(self, samples: list[MoodSample], streak: Streak, sample: MoodSample) -> None:
        try:
            self._gateway.save_mood_samples(samples)
            self._gateway.save_streak(streak)
        except PersistenceError as exc:
            logger.error("mood_ledger.persist_failed", sample_id=sample.id, error=str(exc))
            raise PersistenceError(
                f"mood sample {sample.id} kept in memory but not saved: {exc}",
                result=sample,
            ) from exc

    # ── Read ──────────────────────────────────────────────────

    def recent_samples(self, days: int = DEFAULT_WINDOW_DAYS) -> list[MoodSample]:
        """Samples from the last ``days * 24h``, newest first."""
        return self._aggregator.recent_since(self.samples, days)

    def average_mood(self, days: int = DEFAULT_WINDOW_DAYS) -> float:
        """Mean value of :meth:`recent_samples`; the neutral default when empty."""
        recent = self.recent_samples(days)
        if not recent:
            return self._neutral_mood
        return statistics.fmean(s.value for s in recent)

    def mood_trend(self, days: int = DEFAULT_WINDOW_DAYS) -> list[float]:
        """Daily mean mood, oldest first, ending today.

        ``0`` marks a day without check-ins, never a real score.
        """
        return self._aggregator.daily_average_series(self.samples, days)

    def tag_counts(self, days: int = DEFAULT_WINDOW_DAYS) -> dict[MoodTag, int]:
        return dict(Counter(s.tag for s in self.recent_samples(days) if s.tag is not None))

    def generate_insight(self) -> Insight:
        days = self._insight_window_days
        return generate_insight(
            self.recent_samples(days),
            self.mood_trend(days),
            self._aggregator.tz,
        )
