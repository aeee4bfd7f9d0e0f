"""
questline.client.ledger — Quest Ledger
=======================================

In-memory, newest-first quest list backed by
:mod:`questline.services.quest_service`.  The store stays the source of
truth; the cache is only updated after a write succeeds.

:meth:`QuestLedger.complete` returns the reward instead of awarding it, so
the progression side never needs to know about quest ids and the
"already completed" guard lives in one place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from questline.constants import DEFAULT_XP_REWARD
from questline.database.engine import run_db
from questline.database.models import Quest
from questline.services import quest_service

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


class QuestLedger:
    def __init__(
        self,
        engine: Engine,
        user_id: str,
        *,
        default_xp_reward: int = DEFAULT_XP_REWARD,
    ) -> None:
        self._engine = engine
        self.user_id = user_id
        self.default_xp_reward = default_xp_reward
        self._quests: list[Quest] = []

    @property
    def quests(self) -> list[Quest]:
        return list(self._quests)

    def get(self, quest_id: str) -> Quest | None:
        return next((q for q in self._quests if q.id == quest_id), None)

    def active_titles(self) -> list[str]:
        return [q.title for q in self._quests if not q.is_completed]

    def completed_count(self) -> int:
        return sum(1 for q in self._quests if q.is_completed)

    async def refresh(self) -> list[Quest]:
        self._quests = await run_db(quest_service.list_quests, self._engine, self.user_id)
        return self.quests

    async def create(
        self,
        title: str,
        description: str | None = None,
        xp_reward: int | None = None,
    ) -> Quest:
        """Create an active quest (``ValidationError`` on a blank title)."""
        reward = self.default_xp_reward if xp_reward is None else xp_reward
        quest = await run_db(
            quest_service.create_quest,
            self._engine, self.user_id, title, description, reward,
        )
        self._quests.insert(0, quest)
        return quest

    async def complete(self, quest_id: str) -> int | None:
        """Complete a quest once; return its XP reward, or None if there is
        nothing to award (unknown or already completed)."""
        cached = self.get(quest_id)
        if cached is not None and cached.is_completed:
            return None

        quest = await run_db(
            quest_service.complete_quest, self._engine, self.user_id, quest_id
        )
        if quest is None:
            return None

        self._quests = [quest if q.id == quest_id else q for q in self._quests]
        if cached is None:
            self._quests.insert(0, quest)
        return quest.xp_reward

    async def delete(self, quest_id: str) -> bool:
        """Delete in any state; unknown ids are a no-op returning False."""
        deleted = await run_db(
            quest_service.delete_quest, self._engine, self.user_id, quest_id
        )
        self._quests = [q for q in self._quests if q.id != quest_id]
        return deleted
