"""
questline.services.message_service — Chat Transcript Persistence
=================================================================

Append-only storage for the ``chat_messages`` table.  Ordering is
ascending ``created_at`` with the autoincrement id breaking ties.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from questline.database.engine import get_session
from questline.database.models import ChatMessage, MessageRole
from questline.errors import ValidationError

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


def _role(role: str) -> MessageRole:
    try:
        return MessageRole(role)
    except ValueError:
        raise ValidationError(f"Unknown message role: {role!r}") from None


def store_message(engine: Engine, user_id: str, role: str, content: str) -> ChatMessage:
    """Durably append one message to the user's transcript."""
    message_role = _role(role)
    with get_session(engine, "store chat message") as session:
        message = ChatMessage(user_id=user_id, role=message_role.value, content=content)
        session.add(message)
        session.flush()

    logger.debug("Stored %s message %d for user %s", message_role, message.id, user_id)
    return message


def list_messages(engine: Engine, user_id: str, limit: int | None = None) -> list[ChatMessage]:
    """The user's transcript in chronological order.

    With *limit*, only the most recent *limit* messages are returned (still
    oldest first).
    """
    with get_session(engine, "list chat messages") as session:
        if limit is None:
            rows = session.scalars(
                select(ChatMessage)
                .where(ChatMessage.user_id == user_id)
                .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            ).all()
            return list(rows)

        rows = session.scalars(
            select(ChatMessage)
            .where(ChatMessage.user_id == user_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(limit)
        ).all()
        return list(reversed(rows))
