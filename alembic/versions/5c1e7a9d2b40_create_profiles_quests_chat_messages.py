"""Create profiles, quests and chat_messages tables

Revision ID: 5c1e7a9d2b40
Revises:
Create Date: 2026-10-19 09:12:31.118204

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c1e7a9d2b40'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the three per-user collections."""

    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False, unique=True),
        sa.Column("display_name", sa.String(100), nullable=True),
        sa.Column("current_level", sa.Integer, nullable=False, server_default="1"),
        sa.Column("total_xp", sa.Integer, nullable=False, server_default="0"),
        sa.Column("current_streak", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_active_date", sa.Date, nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.CheckConstraint("current_level >= 1", name="ck_profiles_level_positive"),
        sa.CheckConstraint("total_xp >= 0", name="ck_profiles_xp_non_negative"),
        sa.CheckConstraint("current_streak >= 0", name="ck_profiles_streak_non_negative"),
    )

    # --- quests ---
    op.create_table(
        "quests",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("xp_reward", sa.Integer, nullable=False, server_default="25"),
        sa.Column("is_completed", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.CheckConstraint("xp_reward > 0", name="ck_quests_reward_positive"),
        sa.CheckConstraint(
            "(is_completed AND completed_at IS NOT NULL) "
            "OR (NOT is_completed AND completed_at IS NULL)",
            name="ck_quests_completed_at_matches_state",
        ),
    )
    op.create_index("ix_quests_user_created", "quests", ["user_id", "created_at"])

    # --- chat_messages ---
    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "ix_chat_messages_user_created", "chat_messages", ["user_id", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_chat_messages_user_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_quests_user_created", table_name="quests")
    op.drop_table("quests")
    op.drop_table("profiles")
