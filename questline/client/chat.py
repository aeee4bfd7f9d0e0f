"""
questline.client.chat — One Chat Exchange with the AI Co-Founder
=================================================================

:meth:`ChatSession.send` runs a full exchange:

1. persist the user's message;
2. add an assistant placeholder;
3. stream the reply, feeding each chunk through a
   :class:`~questline.engine.stream.StreamDecoder` and writing the
   accumulated text into the placeholder;
4. persist the final text, which replaces the placeholder.

On a transport failure the placeholder shows the user-facing error text
and the typed error is re-raised.  :meth:`ChatSession.close` abandons an
in-flight read: the decoder and transcript stop accepting updates and the
read task is cancelled, which closes the connection.  The caller's
``send()`` then returns the partial text; nothing is persisted for it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from questline.constants import HISTORY_LIMIT
from questline.database.models import MessageRole
from questline.engine.stream import StreamDecoder, decode_stream
from questline.errors import PersistenceError, TransportError, ValidationError
from questline.services.assistant_service import ChatRequest, HistoryItem

if TYPE_CHECKING:
    from questline.client.assistant import AssistantClient
    from questline.client.session import UserSession

logger = logging.getLogger(__name__)


class ChatSession:
    """Runs chat exchanges for one :class:`UserSession`, one at a time.

    The streaming read of each reply runs in a task this object owns, so
    :meth:`close` can abandon the read without touching the caller's task.
    """

    def __init__(
        self,
        session: UserSession,
        client: AssistantClient,
        *,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.session = session
        self.client = client
        self.history_limit = history_limit
        self._decoder: StreamDecoder | None = None
        self._read_task: asyncio.Task | None = None
        self._sending = False
        self._closed = False

    @property
    def busy(self) -> bool:
        return self._sending

    @property
    def closed(self) -> bool:
        return self._closed

    async def _read_reply(self, request: ChatRequest, decoder: StreamDecoder) -> None:
        transcript = self.session.transcript
        async for _fragment in decode_stream(self.client.stream_reply(request), decoder):
            transcript.update_trailing(decoder.content)

    async def send(self, text: str) -> str:
        """Send *text* and return the assistant's full reply.

        If the session is closed while the reply streams in, the read is
        abandoned and the partial text received so far is returned without
        being persisted.
        """
        message = (text or "").strip()
        if not message:
            raise ValidationError("Message must not be empty.")
        if self._closed:
            raise ValidationError("Chat session is closed.")
        if self._sending:
            raise ValidationError("A reply is already streaming.")

        self._sending = True
        transcript = self.session.transcript
        try:
            history = transcript.history(self.history_limit)
            await transcript.append(MessageRole.USER, message)
            transcript.append_optimistic(MessageRole.ASSISTANT, "")

            request = ChatRequest(
                message=message,
                context=self.session.chat_context(),
                history=[HistoryItem(**item) for item in history],
            )
            decoder = self._decoder = StreamDecoder()
            if self._closed:
                decoder.dispose()
                return decoder.content

            self._read_task = asyncio.create_task(
                self._read_reply(request, decoder), name="chat-reply-read"
            )
            try:
                await self._read_task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if current is not None and current.cancelling():
                    raise
                logger.info("Reply read abandoned after %d characters", len(decoder.content))
                return decoder.content
            except TransportError as exc:
                logger.warning("Assistant reply failed: %s", exc)
                transcript.update_trailing(exc.user_message)
                transcript.release_placeholder()
                raise

            if decoder.disposed:
                # Closed mid-stream: the partial reply is not kept.
                return decoder.content

            try:
                await transcript.append(MessageRole.ASSISTANT, decoder.content)
            except PersistenceError:
                transcript.release_placeholder()
                raise
            return decoder.content
        finally:
            self._sending = False
            self._read_task = None
            self._decoder = None

    def close(self) -> None:
        """Abandon any in-flight reply and detach from the transcript."""
        self._closed = True
        if self._decoder is not None:
            self._decoder.dispose()
        self.session.transcript.dispose()
        if self._read_task is not None:
            self._read_task.cancel()
