"""
questline.engine.stream — Incremental Event-Stream Decoder
===========================================================

Turns the chunked ``text/event-stream`` body of an assistant reply into an
ordered sequence of content fragments.  Chunks arrive in order but with no
alignment to line or record boundaries, so the decoder keeps the trailing
unterminated line as carry-over between :meth:`StreamDecoder.feed` calls.

Wire format (one event per line, blank lines between events)::

    : keep-alive comment
    data: {"choices":[{"delta":{"content":"Hel"}}]}

    data: {"choices":[{"delta":{"content":"lo"}}]}

    data: [DONE]

Pure parsing — no network I/O.  :func:`decode_stream` adapts a decoder to
any async iterator of text chunks (e.g. ``httpx.Response.aiter_text()``).
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass

from pydantic import BaseModel, Field
from pydantic import ValidationError as SchemaError

from questline.errors import MalformedFrameError

logger = logging.getLogger(__name__)

__all__ = [
    "COMMENT_PREFIX",
    "DATA_PREFIX",
    "DONE_MARKER",
    "CompletionChunk",
    "ContentDelta",
    "Frame",
    "StreamDecoder",
    "StreamSentinel",
    "decode_frame",
    "decode_stream",
]

DATA_PREFIX = "data: "
COMMENT_PREFIX = ":"
DONE_MARKER = "[DONE]"


# ---------------------------------------------------------------------------
# Payload schema — OpenAI-compatible streaming chunk
# ---------------------------------------------------------------------------
class _Delta(BaseModel):
    content: str | None = None


class _Choice(BaseModel):
    delta: _Delta | None = None


class CompletionChunk(BaseModel):
    """The subset of a streaming completion chunk we care about.

    Unknown fields are ignored; missing ones default to "no content".
    """

    choices: list[_Choice] = Field(default_factory=list)

    def first_content(self) -> str:
        if not self.choices or self.choices[0].delta is None:
            return ""
        return self.choices[0].delta.content or ""


# ---------------------------------------------------------------------------
# Tagged frames
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ContentDelta:
    """An incremental piece of the reply.  ``text`` may be empty."""

    text: str


@dataclass(frozen=True, slots=True)
class StreamSentinel:
    """The ``[DONE]`` end-of-stream marker."""


Frame = ContentDelta | StreamSentinel


def decode_frame(payload: str) -> Frame:
    """Decode one ``data:`` payload into a tagged frame.

    Raises
    ------
    MalformedFrameError
        If the payload is not valid JSON (typically a line that the
        transport split and that will be completed by a later chunk).
    """
    if payload == DONE_MARKER:
        return StreamSentinel()

    try:
        raw = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedFrameError(f"Undecodable payload: {payload[:80]!r}") from exc

    try:
        chunk = CompletionChunk.model_validate(raw)
    except SchemaError:
        logger.debug("Payload does not match the chunk schema: %.80s", payload)
        return ContentDelta("")
    return ContentDelta(chunk.first_content())


def _payload_of(line: str) -> str | None:
    """Classify one complete line; return its payload or None to skip it."""
    if line.endswith("\r"):
        line = line[:-1]
    if not line.strip() or line.startswith(COMMENT_PREFIX):
        return None
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()


# ---------------------------------------------------------------------------
# StreamDecoder — one instance per in-flight response
# ---------------------------------------------------------------------------
class StreamDecoder:
    """Stateful line decoder for a single streamed response.

    Usage::

        decoder = StreamDecoder()
        for chunk in chunks:
            for fragment in decoder.feed(chunk):
                render(decoder.content)
            if decoder.done:
                break
        decoder.finish()
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._parts: list[str] = []
        self._disposed = False
        self.done = False
        self.malformed_lines = 0

    @property
    def content(self) -> str:
        """Everything emitted so far, concatenated."""
        return "".join(self._parts)

    @property
    def pending(self) -> str:
        """Current carry-over buffer (unterminated or re-queued lines)."""
        return self._buffer

    def feed(self, chunk: str) -> list[str]:
        """Consume *chunk* and return the content fragments it completes.

        A payload that fails to decode is put back, whole and with its line
        terminator, in front of the unprocessed remainder and the rest of
        this chunk is left for the next call, so lines are never handled
        out of order.
        """
        if self.done or self._disposed:
            return []

        self._buffer += chunk
        fragments: list[str] = []

        while True:
            newline = self._buffer.find("\n")
            if newline == -1:
                break
            line = self._buffer[:newline]
            self._buffer = self._buffer[newline + 1:]

            payload = _payload_of(line)
            if payload is None:
                continue

            try:
                frame = decode_frame(payload)
            except MalformedFrameError:
                self.malformed_lines += 1
                self._buffer = line + "\n" + self._buffer
                break

            if isinstance(frame, StreamSentinel):
                self.done = True
                self._buffer = ""
                break

            if frame.text:
                fragments.append(frame.text)
                self._parts.append(frame.text)

        return fragments

    def finish(self) -> str:
        """Signal end of transport; discard and return any carry-over.

        Leftover data at the end of a stream is not an error, but it may
        hide an upstream protocol problem, so it is logged.
        """
        leftover, self._buffer = self._buffer, ""
        if leftover.strip() and not self._disposed:
            logger.warning(
                "Stream ended with %d undecoded characters "
                "(%d malformed line(s) re-queued): %.80r",
                len(leftover), self.malformed_lines, leftover,
            )
        return leftover

    def dispose(self) -> None:
        """Stop decoding; later :meth:`feed` calls return nothing."""
        self._disposed = True
        self._buffer = ""

    @property
    def disposed(self) -> bool:
        return self._disposed


async def decode_stream(
    chunks: AsyncIterable[str],
    decoder: StreamDecoder | None = None,
) -> AsyncIterator[str]:
    """Yield content fragments from an async iterable of text chunks.

    Stops reading as soon as the sentinel arrives or the decoder is
    disposed; :meth:`StreamDecoder.finish` runs however the loop exits, and
    the chunk source is closed so the underlying connection is released.
    """
    decoder = decoder if decoder is not None else StreamDecoder()
    try:
        async for chunk in chunks:
            for fragment in decoder.feed(chunk):
                yield fragment
            if decoder.done or decoder.disposed:
                break
    finally:
        decoder.finish()
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
