"""
questline.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables (each scoped by ``user_id``, the authenticated user's identifier):
- profiles       — One row per user: level, XP, streak, last-active date
- quests         — User-defined units of work with an XP reward
- chat_messages  — Append-only transcript with the AI co-founder
"""

from __future__ import annotations

import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from questline.constants import DEFAULT_XP_REWARD


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Questline ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class MessageRole(enum.StrEnum):
    """Who authored a transcript entry."""
    USER = "user"
    ASSISTANT = "assistant"


# ---------------------------------------------------------------------------
# Profiles — one row per user
# ---------------------------------------------------------------------------
class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    display_name: Mapped[str | None] = mapped_column(String(100), default=None)
    current_level: Mapped[int] = mapped_column(Integer, default=1)
    total_xp: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_active_date: Mapped[date | None] = mapped_column(Date, default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        CheckConstraint("current_level >= 1", name="ck_profiles_level_positive"),
        CheckConstraint("total_xp >= 0", name="ck_profiles_xp_non_negative"),
        CheckConstraint("current_streak >= 0", name="ck_profiles_streak_non_negative"),
    )

    def __repr__(self) -> str:
        return (
            f"<Profile user={self.user_id!r} lvl={self.current_level} "
            f"xp={self.total_xp} streak={self.current_streak}>"
        )


# ---------------------------------------------------------------------------
# Quests — units of work, completed at most once
# ---------------------------------------------------------------------------
class Quest(Base):
    __tablename__ = "quests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    xp_reward: Mapped[int] = mapped_column(Integer, default=DEFAULT_XP_REWARD)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    __table_args__ = (
        CheckConstraint("xp_reward > 0", name="ck_quests_reward_positive"),
        CheckConstraint(
            "(is_completed AND completed_at IS NOT NULL) "
            "OR (NOT is_completed AND completed_at IS NULL)",
            name="ck_quests_completed_at_matches_state",
        ),
        Index("ix_quests_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        state = "done" if self.is_completed else "active"
        return f"<Quest id={self.id} title={self.title!r} {state}>"


# ---------------------------------------------------------------------------
# ChatMessages — append-only transcript
# ---------------------------------------------------------------------------
class ChatMessage(Base):
    """One persisted transcript entry.

    The autoincrement ``id`` doubles as the insertion-order tie breaker
    when two messages share a ``created_at``.
    """
    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow
    )

    __table_args__ = (
        Index("ix_chat_messages_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ChatMessage id={self.id} role={self.role} len={len(self.content)}>"
