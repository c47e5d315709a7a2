"""Heuristic insight text over a week of check-ins.

Rules are evaluated in a fixed order and the first match wins:

1. fewer than :data:`MIN_SAMPLES` check-ins → ask for more data
2. one tag strictly more frequent than every other → dominant driver
3. morning and evening averages differ by more than 1 point
4. latest three trend days vs earliest three differ by more than 0.5
5. otherwise → encouragement
"""

from __future__ import annotations

import statistics
from collections import Counter
from datetime import tzinfo
from enum import Enum
from typing import Sequence

from pydantic import BaseModel

from resonance.models import MoodSample, MoodTag
from resonance.temporal import mean_present, to_local

MIN_SAMPLES = 4
MORNING_END_HOUR = 12
EVENING_START_HOUR = 18
TIME_OF_DAY_MARGIN = 1.0
TREND_MARGIN = 0.5
TREND_EDGE_DAYS = 3


class InsightKind(str, Enum):
    CHECK_IN_MORE = "check_in_more"
    DOMINANT_TAG = "dominant_tag"
    MORNING_BETTER = "morning_better"
    EVENING_BETTER = "evening_better"
    TRENDING_UP = "trending_up"
    TRENDING_DOWN = "trending_down"
    ENCOURAGEMENT = "encouragement"


class Insight(BaseModel):
    kind: InsightKind
    message: str
    tag: MoodTag | None = None

    def __str__(self) -> str:
        return self.message


def dominant_tag(samples: Sequence[MoodSample]) -> MoodTag | None:
    """The tag with a strictly highest count among tagged samples, if any."""
    counts = Counter(s.tag for s in samples if s.tag is not None).most_common(2)
    if not counts:
        return None
    if len(counts) > 1 and counts[0][1] == counts[1][1]:
        return None
    return counts[0][0]


def _time_of_day_insight(samples: Sequence[MoodSample], tz: tzinfo) -> Insight | None:
    hours = [(to_local(s.timestamp, tz).hour, s.value) for s in samples]
    morning = [v for h, v in hours if h < MORNING_END_HOUR]
    evening = [v for h, v in hours if h >= EVENING_START_HOUR]
    if not morning or not evening:
        return None
    morning_avg = statistics.fmean(morning)
    evening_avg = statistics.fmean(evening)
    if morning_avg > evening_avg + TIME_OF_DAY_MARGIN:
        return Insight(kind=InsightKind.MORNING_BETTER, message="You tend to feel better in the mornings")
    if evening_avg > morning_avg + TIME_OF_DAY_MARGIN:
        return Insight(kind=InsightKind.EVENING_BETTER, message="Your mood improves throughout the day")
    return None


def _trend_insight(trend: Sequence[float]) -> Insight | None:
    if len(trend) < TREND_EDGE_DAYS:
        return None
    # Empty days are 0 in the series and must not drag the means down.
    recent = mean_present(trend[-TREND_EDGE_DAYS:])
    older = mean_present(trend[:TREND_EDGE_DAYS])
    if recent is None or older is None:
        return None
    if recent > older + TREND_MARGIN:
        return Insight(kind=InsightKind.TRENDING_UP, message="Your mood is trending upward!")
    if older > recent + TREND_MARGIN:
        return Insight(kind=InsightKind.TRENDING_DOWN, message="Take extra care of yourself today")
    return None


def generate_insight(
    samples: Sequence[MoodSample],
    trend: Sequence[float],
    tz: tzinfo,
) -> Insight:
    """Classify a window of *samples* and its daily *trend* into one insight."""
    if len(samples) < MIN_SAMPLES:
        return Insight(kind=InsightKind.CHECK_IN_MORE, message="Check in daily to see your patterns")

    tag = dominant_tag(samples)
    if tag is not None:
        return Insight(
            kind=InsightKind.DOMINANT_TAG,
            message=f"Your mood is most affected by {tag.value} this week",
            tag=tag,
        )

    return (
        _time_of_day_insight(samples, tz)
        or _trend_insight(trend)
        or Insight(kind=InsightKind.ENCOURAGEMENT, message="You're building great tracking habits!")
    )
