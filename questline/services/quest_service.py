"""
questline.services.quest_service — Quest CRUD with One-Way Completion
======================================================================

Quests are created active, transition once to completed and may be
deleted from either state.  :func:`complete_quest` is the single place
that guards against double completion: the UPDATE only matches rows that
are still active, so a second call can never hand out the reward again.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import delete, select, update

from questline.constants import DEFAULT_XP_REWARD
from questline.database.engine import get_session
from questline.database.models import Quest
from questline.errors import ValidationError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError("Quest title must not be empty.")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"Quest title must be at most {MAX_TITLE_LENGTH} characters.")
    return cleaned


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_quests(engine: Engine, user_id: str) -> list[Quest]:
    """All of the user's quests, newest first."""
    with get_session(engine, "list quests") as session:
        rows = session.scalars(
            select(Quest)
            .where(Quest.user_id == user_id)
            .order_by(Quest.created_at.desc())
        ).all()
        return list(rows)


def get_quest(engine: Engine, user_id: str, quest_id: str) -> Quest | None:
    with get_session(engine, "fetch quest") as session:
        return session.scalar(
            select(Quest).where(Quest.id == quest_id, Quest.user_id == user_id)
        )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_quest(
    engine: Engine,
    user_id: str,
    title: str,
    description: str | None = None,
    xp_reward: int = DEFAULT_XP_REWARD,
) -> Quest:
    """Insert a new active quest.

    Raises
    ------
    ValidationError
        If the title is blank after trimming or the reward is not positive.
    PersistenceError
        If the insert fails.
    """
    clean_title = _clean_title(title)
    if isinstance(xp_reward, bool) or not isinstance(xp_reward, int) or xp_reward <= 0:
        raise ValidationError(f"XP reward must be a positive integer, got {xp_reward!r}")
    clean_description = description.strip() if description else None

    with get_session(engine, "create quest") as session:
        quest = Quest(
            user_id=user_id,
            title=clean_title,
            description=clean_description or None,
            xp_reward=xp_reward,
            is_completed=False,
        )
        session.add(quest)
        session.flush()

    logger.info("User %s created quest %s (%d XP)", user_id, quest.id, quest.xp_reward)
    return quest


def complete_quest(
    engine: Engine,
    user_id: str,
    quest_id: str,
    *,
    now: datetime | None = None,
) -> Quest | None:
    """Mark an active quest completed.

    Returns the updated quest, or None when the quest doesn't exist or was
    already completed — in which case the caller must not award XP.
    """
    completed_at = now or datetime.now(UTC)
    with get_session(engine, "complete quest") as session:
        result = session.execute(
            update(Quest)
            .where(
                Quest.id == quest_id,
                Quest.user_id == user_id,
                Quest.is_completed.is_(False),
            )
            .values(is_completed=True, completed_at=completed_at)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.debug("Quest %s not completable (missing or already done)", quest_id)
            return None
        quest = session.scalar(select(Quest).where(Quest.id == quest_id))

    logger.info("User %s completed quest %s", user_id, quest_id)
    return quest


def delete_quest(engine: Engine, user_id: str, quest_id: str) -> bool:
    """Delete a quest in any state.  Returns False if it didn't exist."""
    with get_session(engine, "delete quest") as session:
        result = session.execute(
            delete(Quest).where(Quest.id == quest_id, Quest.user_id == user_id)
        )
        deleted = result.rowcount > 0

    if deleted:
        logger.info("User %s deleted quest %s", user_id, quest_id)
    return deleted
