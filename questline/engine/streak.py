"""
questline.engine.streak — Daily Streak State Machine
=====================================================

Evaluated once when a session starts, comparing *today* with the profile's
last-active date (both calendar dates, so there is no time-of-day to
normalize away):

    diff == 0   already active today         → unchanged
    diff == 1   first activity since yesterday → streak + 1
    diff  > 1   missed at least one day      → streak reset to 0
    diff  < 0   last-active date in future   → unchanged, logged as anomaly
    no date     brand-new profile            → unchanged (first XP award sets it)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import date

logger = logging.getLogger(__name__)

__all__ = ["StreakResult", "StreakTransition", "evaluate_streak"]


class StreakTransition(enum.StrEnum):
    UNCHANGED = "unchanged"
    INCREMENT = "increment"
    RESET = "reset"
    ANOMALY = "anomaly"
    NO_HISTORY = "no_history"


@dataclass(frozen=True, slots=True)
class StreakResult:
    transition: StreakTransition
    streak: int
    diff_days: int | None = None

    @property
    def changed(self) -> bool:
        """True when the transition must be persisted."""
        return self.transition in (StreakTransition.INCREMENT, StreakTransition.RESET)


def evaluate_streak(
    current_streak: int, last_active: date | None, today: date
) -> StreakResult:
    """Return the streak transition for a session starting on *today*."""
    if last_active is None:
        return StreakResult(StreakTransition.NO_HISTORY, current_streak)

    diff_days = (today - last_active).days

    if diff_days == 0:
        return StreakResult(StreakTransition.UNCHANGED, current_streak, diff_days)
    if diff_days == 1:
        return StreakResult(StreakTransition.INCREMENT, current_streak + 1, diff_days)
    if diff_days > 1:
        return StreakResult(StreakTransition.RESET, 0, diff_days)

    logger.warning(
        "Last-active date %s is %d day(s) after today (%s); leaving streak at %d",
        last_active.isoformat(), -diff_days, today.isoformat(), current_streak,
    )
    return StreakResult(StreakTransition.ANOMALY, current_streak, diff_days)
