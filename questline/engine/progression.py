"""
questline.engine.progression — XP → Level Calculation
======================================================

Pure calculation, no DB I/O.  The persisting side lives in
:mod:`questline.services.profile_service`.

This module does not guard against double awards: the quest ledger's
one-way completion is what guarantees each reward is applied once.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from questline.constants import level_for_xp
from questline.errors import ValidationError

__all__ = ["AwardResult", "award_xp", "level_for_xp"]


@dataclass(frozen=True, slots=True)
class AwardResult:
    """Outcome of applying one XP award to a profile."""

    xp: int
    old_total_xp: int
    new_total_xp: int
    old_level: int
    new_level: int
    activity_date: date

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.old_level


def award_xp(total_xp: int, amount: int, *, today: date) -> AwardResult:
    """Add *amount* XP to *total_xp* and recompute the level.

    No cap on total XP.  The old level is recomputed from *total_xp* rather
    than trusted from the caller, so a drifted stored level is corrected
    by the next award.
    """
    if amount <= 0:
        raise ValidationError(f"XP award must be a positive integer, got {amount}")

    new_total = total_xp + amount
    return AwardResult(
        xp=amount,
        old_total_xp=total_xp,
        new_total_xp=new_total,
        old_level=level_for_xp(total_xp),
        new_level=level_for_xp(new_total),
        activity_date=today,
    )
