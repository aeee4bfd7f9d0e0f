"""
questline.api.routes.quests — Quest CRUD & completion
======================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from questline.api.deps import CurrentUser, get_config, get_engine
from questline.api.routes.profile import profile_dict
from questline.config import QuestlineConfig
from questline.constants import today_in
from questline.database.models import Quest
from questline.errors import PersistenceError
from questline.services import profile_service, quest_service

router = APIRouter(prefix="/quests", tags=["quests"])
logger = logging.getLogger(__name__)


class QuestCreate(BaseModel):
    title: str
    description: str | None = None
    xp_reward: int | None = None


def quest_dict(q: Quest) -> dict:
    return {
        "id": q.id,
        "title": q.title,
        "description": q.description,
        "xp_reward": q.xp_reward,
        "is_completed": q.is_completed,
        "completed_at": q.completed_at.isoformat() if q.completed_at else None,
        "created_at": q.created_at.isoformat() if q.created_at else None,
    }


@router.get("")
def list_quests(user_id: CurrentUser, engine=Depends(get_engine)):
    """All quests, newest first."""
    return [quest_dict(q) for q in quest_service.list_quests(engine, user_id)]


@router.post("", status_code=201)
def create_quest(
    body: QuestCreate,
    user_id: CurrentUser,
    engine=Depends(get_engine),
    cfg: QuestlineConfig = Depends(get_config),
):
    reward = cfg.default_xp_reward if body.xp_reward is None else body.xp_reward
    quest = quest_service.create_quest(engine, user_id, body.title, body.description, reward)
    return quest_dict(quest)


@router.post("/{quest_id}/complete")
def complete_quest(
    quest_id: str,
    user_id: CurrentUser,
    engine=Depends(get_engine),
    cfg: QuestlineConfig = Depends(get_config),
):
    """Complete a quest and award its XP.  Repeat calls award nothing."""
    quest = quest_service.complete_quest(engine, user_id, quest_id)
    if quest is None:
        existing = quest_service.get_quest(engine, user_id, quest_id)
        if existing is None:
            raise HTTPException(404, "Quest not found")
        return {
            "quest": quest_dict(existing),
            "xp_awarded": 0,
            "leveled_up": False,
            "profile": profile_dict(profile_service.get_or_create_profile(engine, user_id)),
        }

    try:
        profile, award = profile_service.award_xp(
            engine, user_id, quest.xp_reward, today=today_in(cfg.timezone)
        )
    except PersistenceError:
        logger.error(
            "Quest %s completed but its %d XP award was not stored",
            quest_id, quest.xp_reward,
        )
        raise
    return {
        "quest": quest_dict(quest),
        "xp_awarded": award.xp,
        "leveled_up": award.leveled_up,
        "profile": profile_dict(profile),
    }


@router.delete("/{quest_id}", status_code=204)
def delete_quest(quest_id: str, user_id: CurrentUser, engine=Depends(get_engine)):
    """Delete in any state.  Unknown ids are not an error."""
    quest_service.delete_quest(engine, user_id, quest_id)
    return Response(status_code=204)
