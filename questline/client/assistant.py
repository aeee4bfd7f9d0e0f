"""
questline.client.assistant — Streaming Client for the AI Co-Founder
====================================================================

Posts a :class:`~questline.services.assistant_service.ChatRequest` and
yields the raw text chunks of the ``text/event-stream`` reply as they
arrive.  Decoding is left to :mod:`questline.engine.stream`.

Failures are raised once as :class:`~questline.errors.TransportError` (or
its 429 / 402 variants).  Nothing is retried here — that is the caller's
call.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

import httpx

from questline.constants import HISTORY_LIMIT
from questline.errors import TransportError
from questline.services.assistant_service import ChatRequest, error_for_status

logger = logging.getLogger(__name__)


class AssistantClient:
    """Thin httpx wrapper around the streaming chat endpoint.

    Usage::

        client = AssistantClient(cfg.assistant_url, token=jwt)
        async for chunk in client.stream_reply(request):
            ...
    """

    def __init__(
        self,
        url: str,
        *,
        token: str | None = None,
        timeout: float = 120.0,
        history_limit: int = HISTORY_LIMIT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self.history_limit = history_limit
        self._token = token
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def stream_reply(self, request: ChatRequest) -> AsyncIterator[str]:
        """Yield decoded text chunks of the reply body in arrival order."""
        payload = request.to_payload(self.history_limit)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST", self.url, json=payload, headers=self._headers()
                ) as response:
                    error = error_for_status(response.status_code)
                    if error is not None:
                        body = await response.aread()
                        logger.warning(
                            "Assistant endpoint returned %d: %s",
                            response.status_code,
                            body.decode("utf-8", errors="replace")[:200],
                        )
                        raise error

                    async for chunk in response.aiter_text():
                        yield chunk
        except httpx.HTTPError as exc:
            logger.warning("Assistant request failed: %s", exc)
            raise TransportError(f"Assistant request failed: {exc}") from exc
