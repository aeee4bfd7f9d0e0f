"""
questline.api.routes.profile — Profile, onboarding & session start
===================================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from questline.api.deps import CurrentUser, get_config, get_engine
from questline.config import QuestlineConfig
from questline.constants import today_in, xp_into_level
from questline.database.models import Profile
from questline.services import profile_service

router = APIRouter(prefix="/profile", tags=["profile"])


class DisplayNameUpdate(BaseModel):
    display_name: str


def profile_dict(p: Profile) -> dict:
    xp_in_level, xp_needed = xp_into_level(p.total_xp)
    return {
        "user_id": p.user_id,
        "display_name": p.display_name,
        "level": p.current_level,
        "total_xp": p.total_xp,
        "xp_in_level": xp_in_level,
        "xp_for_next": xp_needed,
        "streak": p.current_streak,
        "last_active_date": p.last_active_date.isoformat() if p.last_active_date else None,
    }


@router.get("")
def get_profile(user_id: CurrentUser, engine=Depends(get_engine)):
    return profile_dict(profile_service.get_or_create_profile(engine, user_id))


@router.patch("")
def update_profile(body: DisplayNameUpdate, user_id: CurrentUser, engine=Depends(get_engine)):
    """Set the display name chosen during onboarding."""
    return profile_dict(profile_service.set_display_name(engine, user_id, body.display_name))


@router.post("/session")
def start_session(
    user_id: CurrentUser,
    engine=Depends(get_engine),
    cfg: QuestlineConfig = Depends(get_config),
):
    """Evaluate the daily streak.  Call once when a session begins."""
    profile, result = profile_service.evaluate_streak(
        engine, user_id, today=today_in(cfg.timezone)
    )
    return {
        "profile": profile_dict(profile),
        "transition": result.transition.value,
        "streak_changed": result.changed,
    }
