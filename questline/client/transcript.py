"""
questline.client.transcript — Optimistic Transcript Synchronizer
=================================================================

Owns the in-memory, ordered chat transcript for one user session and keeps
it consistent with the ``chat_messages`` table.

An assistant reply is a two-phase commit:

1. **Optimistic** — :meth:`TranscriptSynchronizer.append_optimistic` adds a
   placeholder (``temp-`` id, ``pending=True``) that
   :meth:`~TranscriptSynchronizer.update_trailing` fills while the reply
   streams in.
2. **Durable** — :meth:`~TranscriptSynchronizer.append` persists the final
   text and the stored message takes the placeholder's slot.

So each exchange leaves exactly one persisted assistant message, never a
placeholder *and* a copy.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from questline.constants import HISTORY_LIMIT, TEMP_ID_PREFIX
from questline.database.engine import run_db
from questline.database.models import ChatMessage, MessageRole
from questline.services import message_service

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = logging.getLogger(__name__)


@dataclass
class TranscriptEntry:
    """One transcript line as shown to the user."""

    id: str
    role: MessageRole
    content: str
    created_at: datetime
    pending: bool = False

    @classmethod
    def from_row(cls, row: ChatMessage) -> TranscriptEntry:
        return cls(
            id=str(row.id),
            role=MessageRole(row.role),
            content=row.content,
            created_at=row.created_at,
        )

    @property
    def ephemeral(self) -> bool:
        """Never persisted (lives in the ``temp-`` id namespace)."""
        return self.id.startswith(TEMP_ID_PREFIX)

    @property
    def is_placeholder(self) -> bool:
        return self.pending and self.role is MessageRole.ASSISTANT


class TranscriptSynchronizer:
    """Ordered message log with optimistic placeholders."""

    def __init__(self, engine: Engine, user_id: str) -> None:
        self._engine = engine
        self.user_id = user_id
        self._entries: list[TranscriptEntry] = []
        self._disposed = False

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    @property
    def entries(self) -> list[TranscriptEntry]:
        return list(self._entries)

    @property
    def disposed(self) -> bool:
        return self._disposed

    @property
    def placeholder(self) -> TranscriptEntry | None:
        index = self._placeholder_index()
        return None if index is None else self._entries[index]

    def _placeholder_index(self) -> int | None:
        for index in range(len(self._entries) - 1, -1, -1):
            if self._entries[index].is_placeholder:
                return index
        return None

    def history(self, limit: int = HISTORY_LIMIT) -> list[dict[str, str]]:
        """The last *limit* persisted entries as ``{"role", "content"}`` dicts."""
        settled = [e for e in self._entries if not e.ephemeral]
        tail = settled[-limit:] if limit else []
        return [{"role": e.role.value, "content": e.content} for e in tail]

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    async def load(self) -> list[TranscriptEntry]:
        """Replace the in-memory transcript with the stored one."""
        rows = await run_db(message_service.list_messages, self._engine, self.user_id)
        if not self._disposed:
            self._entries = [TranscriptEntry.from_row(row) for row in rows]
        return self.entries

    async def append(self, role: str, content: str) -> TranscriptEntry:
        """Persist a message, then add it to the transcript.

        If the store fails the :class:`~questline.errors.PersistenceError`
        propagates and the in-memory transcript is left as it was.  A
        persisted assistant message replaces the pending placeholder.
        """
        row = await run_db(
            message_service.store_message, self._engine, self.user_id, role, content
        )
        entry = TranscriptEntry.from_row(row)
        if self._disposed:
            return entry

        if entry.role is MessageRole.ASSISTANT:
            index = self._placeholder_index()
            if index is not None:
                self._entries[index] = entry
                return entry

        self._entries.append(entry)
        return entry

    def append_optimistic(self, role: str, content: str) -> TranscriptEntry:
        """Add an in-memory-only entry for immediate feedback."""
        entry = TranscriptEntry(
            id=f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}",
            role=MessageRole(role),
            content=content,
            created_at=datetime.now(UTC),
            pending=True,
        )
        if self._disposed:
            return entry

        if entry.is_placeholder:
            stale = self._placeholder_index()
            if stale is not None:
                logger.debug("Dropping stale placeholder %s", self._entries[stale].id)
                del self._entries[stale]

        self._entries.append(entry)
        return entry

    def update_trailing(self, content: str) -> bool:
        """Replace the trailing entry's content if it is the placeholder.

        Returns False (and changes nothing) when the last entry is anything
        else — e.g. the user has sent another message in the meantime.
        """
        if self._disposed or not self._entries:
            return False
        last = self._entries[-1]
        if not last.is_placeholder:
            return False
        last.content = content
        return True

    def release_placeholder(self) -> TranscriptEntry | None:
        """Stop treating the placeholder as pending, keeping its text.

        Used when an exchange fails: the entry stays visible with the
        error text but is never persisted or overwritten.
        """
        index = self._placeholder_index()
        if index is None:
            return None
        entry = self._entries[index]
        entry.pending = False
        return entry

    def dispose(self) -> None:
        """Detach from the view; later updates leave the transcript alone."""
        self._disposed = True
