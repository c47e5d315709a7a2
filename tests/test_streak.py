"""Tests for the day-gap streak rule."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from resonance.errors import InvalidInputError
from resonance.models import Streak
from resonance.mood.streak import update_streak

D = date(2026, 3, 1)


def _run(days: list[date]) -> Streak:
    streak = Streak()
    for d in days:
        streak = update_streak(streak, d)
    return streak


def test_first_check_in():
    assert update_streak(Streak(), D) == Streak(
        current_streak=1, longest_streak=1, last_check_in_date=D
    )


def test_consecutive_days():
    streak = _run([D, D + timedelta(days=1), D + timedelta(days=2)])
    assert streak.current_streak == 3
    assert streak.longest_streak == 3
    assert streak.last_check_in_date == D + timedelta(days=2)


def test_same_day_is_unchanged():
    before = _run([D, D + timedelta(days=1)])
    after = update_streak(before, D + timedelta(days=1))
    assert after == before


def test_gap_resets_current_but_keeps_longest():
    streak = _run([D, D + timedelta(days=1), D + timedelta(days=2), D + timedelta(days=5)])
    assert streak.current_streak == 1
    assert streak.longest_streak == 3
    assert streak.last_check_in_date == D + timedelta(days=5)


def test_new_run_can_exceed_old_longest():
    days = [D, D + timedelta(days=1)] + [D + timedelta(days=n) for n in range(4, 8)]
    streak = _run(days)
    assert streak.current_streak == 4
    assert streak.longest_streak == 4


def test_past_day_is_a_no_op():
    before = _run([D, D + timedelta(days=1)])
    after = update_streak(before, D - timedelta(days=3))
    assert after == before


def test_longest_must_cover_current():
    with pytest.raises(InvalidInputError):
        Streak(current_streak=3, longest_streak=2)
