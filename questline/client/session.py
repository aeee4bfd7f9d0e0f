"""
questline.client.session — Explicit Per-User Session
=====================================================

One :class:`UserSession` per signed-in user.  It owns the profile snapshot,
the :class:`~questline.client.ledger.QuestLedger` and the
:class:`~questline.client.transcript.TranscriptSynchronizer`, and is passed
by reference to whatever needs them; none of those components read global
state.

Usage::

    session = UserSession(engine, user_id, config)
    await session.start()                  # load state, evaluate streak once
    award = await session.complete_quest(quest_id)
    if award and award.leveled_up:
        celebrate(award.new_level)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from typing import TYPE_CHECKING

from questline.client.ledger import QuestLedger
from questline.client.transcript import TranscriptSynchronizer
from questline.constants import DEFAULT_USER_NAME, DEFAULT_XP_REWARD, today_in
from questline.database.engine import run_db
from questline.database.models import Profile
from questline.engine.progression import AwardResult
from questline.engine.streak import StreakResult
from questline.errors import PersistenceError
from questline.services import profile_service
from questline.services.assistant_service import ChatContext

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from questline.config import QuestlineConfig

logger = logging.getLogger(__name__)


class UserSession:
    def __init__(
        self,
        engine: Engine,
        user_id: str,
        config: QuestlineConfig | None = None,
        *,
        clock: Callable[[], date] | None = None,
    ) -> None:
        self._engine = engine
        self.user_id = user_id
        tz_name = config.timezone if config is not None else "UTC"
        self._clock = clock or (lambda: today_in(tz_name))
        self.profile: Profile | None = None
        self.streak: StreakResult | None = None
        self.quests = QuestLedger(
            engine,
            user_id,
            default_xp_reward=config.default_xp_reward if config else DEFAULT_XP_REWARD,
        )
        self.transcript = TranscriptSynchronizer(engine, user_id)

    def today(self) -> date:
        return self._clock()

    async def start(self) -> StreakResult:
        """Load profile, quests and transcript; run the streak check once."""
        self.profile, self.streak = await run_db(
            profile_service.evaluate_streak, self._engine, self.user_id, today=self.today()
        )
        await self.quests.refresh()
        await self.transcript.load()
        logger.info(
            "Session started for %s (level %d, streak %d: %s)",
            self.user_id, self.profile.current_level,
            self.profile.current_streak, self.streak.transition,
        )
        return self.streak

    async def award_xp(self, amount: int) -> AwardResult:
        """Persist an XP award; the snapshot only changes once it is stored."""
        self.profile, result = await run_db(
            profile_service.award_xp, self._engine, self.user_id, amount, today=self.today()
        )
        return result

    async def complete_quest(self, quest_id: str) -> AwardResult | None:
        """Complete a quest and award its XP.  None when nothing was awarded."""
        reward = await self.quests.complete(quest_id)
        if reward is None:
            return None
        try:
            return await self.award_xp(reward)
        except PersistenceError:
            logger.error(
                "Quest %s completed but its %d XP award was not stored", quest_id, reward
            )
            raise

    def chat_context(self) -> ChatContext:
        profile = self.profile
        return ChatContext(
            user_name=(profile.display_name if profile else None) or DEFAULT_USER_NAME,
            level=profile.current_level if profile else 1,
            total_xp=profile.total_xp if profile else 0,
            streak=profile.current_streak if profile else 0,
            active_quests=self.quests.active_titles(),
            completed_quests_count=self.quests.completed_count(),
        )

    def close(self) -> None:
        self.transcript.dispose()
