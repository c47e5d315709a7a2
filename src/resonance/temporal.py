"""Temporal aggregation — calendar-day bucketing and windowed averages.

Shared by mood samples and activity records.  All day boundaries are
evaluated in a caller-supplied local time zone.

The ``0`` sentinel
------------------
:func:`daily_average_series` reports a day without data as ``0.0``
(:data:`NO_DATA`).  A real mood is never below 1, so consumers must read
any value ``<= 0`` in a series as *absent*, never as a low score.  Use
:func:`is_absent` / :func:`mean_present` rather than averaging a series
directly.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone, tzinfo
from operator import attrgetter
from typing import Callable, Iterable, Protocol, Sequence, TypeVar

from resonance.errors import InvalidInputError

NO_DATA = 0.0

Clock = Callable[[], datetime]


class Timestamped(Protocol):
    @property
    def timestamp(self) -> datetime: ...


T = TypeVar("T", bound=Timestamped)

_value = attrgetter("value")


# ── Time helpers ──────────────────────────────────────────────


def to_local(ts: datetime, tz: tzinfo) -> datetime:
    """Express *ts* in *tz*.  Naive timestamps are taken to already be local."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=tz)
    return ts.astimezone(tz)


def local_day(ts: datetime, tz: tzinfo) -> date:
    return to_local(ts, tz).date()


def system_clock(tz: tzinfo = timezone.utc) -> Clock:
    """Return a clock reading the current wall time in *tz*."""
    return lambda: datetime.now(tz)


def is_absent(value: float) -> bool:
    """True if a trend-series entry means *no data* rather than a measurement."""
    return value <= NO_DATA


def mean_present(values: Iterable[float]) -> float | None:
    """Mean of the non-absent entries of a series, ``None`` if all are absent."""
    present = [v for v in values if not is_absent(v)]
    return statistics.fmean(present) if present else None


# ── Aggregations ──────────────────────────────────────────────


def bucket_by_day(
    items: Iterable[T],
    tz: tzinfo,
    value_of: Callable[[T], float] = _value,
) -> dict[date, list[float]]:
    """Group item values by local calendar day."""
    buckets: dict[date, list[float]] = defaultdict(list)
    for item in items:
        buckets[local_day(item.timestamp, tz)].append(float(value_of(item)))
    return dict(buckets)


def recent_since(items: Iterable[T], days: int, now: datetime) -> list[T]:
    """Items with ``timestamp >= now - days * 24h``, newest first."""
    tz = now.tzinfo or timezone.utc
    cutoff = to_local(now, tz) - timedelta(days=days)
    recent = [i for i in items if to_local(i.timestamp, tz) >= cutoff]
    recent.sort(key=lambda i: to_local(i.timestamp, tz), reverse=True)
    return recent


def daily_average_series(
    items: Iterable[T],
    days: int,
    now: datetime,
    tz: tzinfo,
    value_of: Callable[[T], float] = _value,
) -> list[float]:
    """Per-day mean for the last *days* local days, oldest first, ending today.

    Days without values yield :data:`NO_DATA`.
    """
    if days <= 0:
        raise InvalidInputError(f"days must be positive, got {days}")
    buckets = bucket_by_day(items, tz, value_of)
    today = local_day(now, tz)
    series: list[float] = []
    for offset in range(days - 1, -1, -1):
        values = buckets.get(today - timedelta(days=offset))
        series.append(statistics.fmean(values) if values else NO_DATA)
    return series


class TemporalAggregator:
    """Binds the aggregation helpers to one time zone and clock."""

    def __init__(self, tz: tzinfo = timezone.utc, clock: Clock | None = None) -> None:
        self.tz = tz
        self._clock = clock or system_clock(tz)

    def now(self) -> datetime:
        return to_local(self._clock(), self.tz)

    def today(self) -> date:
        return self.now().date()

    def day_of(self, ts: datetime) -> date:
        return local_day(ts, self.tz)

    def recent_since(self, items: Sequence[T], days: int) -> list[T]:
        return recent_since(items, days, self.now())

    def daily_average_series(
        self,
        items: Sequence[T],
        days: int,
        value_of: Callable[[T], float] = _value,
    ) -> list[float]:
        return daily_average_series(items, days, self.now(), self.tz, value_of)

    def bucket_by_day(
        self,
        items: Sequence[T],
        value_of: Callable[[T], float] = _value,
    ) -> dict[date, list[float]]:
        return bucket_by_day(items, self.tz, value_of)
