"""Consecutive-day streak rule."""

from __future__ import annotations

from datetime import date

from resonance.models import Streak


def update_streak(streak: Streak, day: date) -> Streak:
    """Return the streak after a check-in on local calendar *day*.

    * first check-in → ``1 / 1``
    * same day → unchanged
    * next day → current + 1, longest follows
    * later gap → current resets to 1, longest kept
    * earlier day (out-of-order insert) → unchanged, including the date
    """
    last = streak.last_check_in_date
    if last is None:
        return Streak(
            current_streak=1,
            longest_streak=max(streak.longest_streak, 1),
            last_check_in_date=day,
        )

    gap = (day - last).days
    if gap < 0:
        return streak
    if gap == 0:
        return streak.model_copy(update={"last_check_in_date": day})
    if gap == 1:
        current = streak.current_streak + 1
        return Streak(
            current_streak=current,
            longest_streak=max(streak.longest_streak, current),
            last_check_in_date=day,
        )
    return Streak(
        current_streak=1,
        longest_streak=streak.longest_streak,
        last_check_in_date=day,
    )
