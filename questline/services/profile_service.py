"""
questline.services.profile_service — Profile Persistence & Progression
=======================================================================

Applies the pure progression and streak engines to the durable
``profiles`` row.  These are the only writers of ``total_xp``,
``current_level``, ``current_streak`` and ``last_active_date``.

Every function opens its own session and returns detached ORM instances
that are safe to read after the session closes.  Store failures surface as
:class:`~questline.errors.PersistenceError` (see
:func:`questline.database.engine.get_session`).
"""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import Session

from questline.database.engine import get_session
from questline.database.models import Profile
from questline.engine import progression, streak
from questline.errors import ValidationError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _get_or_create(session: Session, user_id: str) -> Profile:
    """Fetch or insert the Profile row for *user_id*."""
    profile = session.scalar(select(Profile).where(Profile.user_id == user_id))
    if profile is None:
        profile = Profile(
            user_id=user_id,
            current_level=1,
            total_xp=0,
            current_streak=0,
        )
        session.add(profile)
        session.flush()
        logger.info("Created profile for user %s", user_id)
    return profile


def get_profile(engine: Engine, user_id: str) -> Profile | None:
    """Return the user's profile, or None if it doesn't exist yet."""
    with get_session(engine, "fetch profile") as session:
        return session.scalar(select(Profile).where(Profile.user_id == user_id))


def get_or_create_profile(engine: Engine, user_id: str) -> Profile:
    """Return the user's profile, creating it on first access."""
    with get_session(engine, "fetch profile") as session:
        return _get_or_create(session, user_id)


def set_display_name(engine: Engine, user_id: str, display_name: str) -> Profile:
    """Set the display name chosen during onboarding."""
    name = display_name.strip()
    if not name:
        raise ValidationError("Display name must not be empty.")
    with get_session(engine, "update display name") as session:
        profile = _get_or_create(session, user_id)
        profile.display_name = name
    return profile


def award_xp(
    engine: Engine, user_id: str, amount: int, *, today: date
) -> tuple[Profile, progression.AwardResult]:
    """Add *amount* XP to the user's profile in a single update.

    Writes the new total, the recomputed level and ``last_active_date =
    today`` together.  Call exactly once per real award — double-award
    protection belongs to the quest ledger.
    """
    with get_session(engine, "award XP") as session:
        profile = _get_or_create(session, user_id)
        result = progression.award_xp(profile.total_xp, amount, today=today)
        profile.total_xp = result.new_total_xp
        profile.current_level = result.new_level
        profile.last_active_date = today

    if result.leveled_up:
        logger.info(
            "User %s leveled up: %d → %d (%d XP)",
            user_id, result.old_level, result.new_level, result.new_total_xp,
        )
    return profile, result


def evaluate_streak(
    engine: Engine, user_id: str, *, today: date
) -> tuple[Profile, streak.StreakResult]:
    """Run the streak state machine for a session starting on *today*.

    Only an increment or a reset is written (new streak value plus
    ``last_active_date = today``); every other outcome leaves the row alone.
    """
    with get_session(engine, "evaluate streak") as session:
        profile = _get_or_create(session, user_id)
        result = streak.evaluate_streak(
            profile.current_streak, profile.last_active_date, today
        )
        if result.changed:
            profile.current_streak = result.streak
            profile.last_active_date = today

    logger.debug("Streak for user %s: %s → %d", user_id, result.transition, result.streak)
    return profile, result
