"""
questline.api.routes.assistant — AI co-founder streaming proxy
===============================================================

Keeps the gateway key on the server: the client posts its message,
progress context and recent history here, and gets the upstream
``text/event-stream`` body relayed back unchanged.
"""

from __future__ import annotations

import logging
import os

import httpx
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from questline.api.deps import CurrentUser, get_config, get_gateway_transport
from questline.config import QuestlineConfig
from questline.errors import QuotaExhaustedError, RateLimitError, TransportError
from questline.services import assistant_service
from questline.services.assistant_service import ChatRequest

router = APIRouter(prefix="/assistant", tags=["assistant"])
logger = logging.getLogger(__name__)


def _error_response(exc: TransportError) -> JSONResponse:
    if isinstance(exc, RateLimitError):
        return JSONResponse({"error": "Rate limit exceeded"}, status_code=429)
    if isinstance(exc, QuotaExhaustedError):
        return JSONResponse({"error": "Payment required"}, status_code=402)
    return JSONResponse({"error": "AI gateway error"}, status_code=500)


@router.post("/chat")
async def chat(
    body: ChatRequest,
    user_id: CurrentUser,
    cfg: QuestlineConfig = Depends(get_config),
    transport: httpx.AsyncBaseTransport | None = Depends(get_gateway_transport),
):
    api_key = os.getenv("ASSISTANT_API_KEY")
    if not api_key:
        logger.error("ASSISTANT_API_KEY is not configured")
        return JSONResponse({"error": "ASSISTANT_API_KEY is not configured"}, status_code=500)

    client = httpx.AsyncClient(timeout=cfg.request_timeout, transport=transport)
    try:
        upstream = await assistant_service.open_upstream_stream(client, cfg, api_key, body)
    except TransportError as exc:
        await client.aclose()
        return _error_response(exc)

    logger.debug("Relaying assistant stream for user %s", user_id)

    async def relay():
        # aiter_bytes() undoes any Content-Encoding; the relayed response
        # carries none.
        try:
            async for chunk in upstream.aiter_bytes():
                yield chunk
        except httpx.HTTPError as exc:
            logger.error("AI gateway stream for user %s broke off: %s", user_id, exc)
        finally:
            await upstream.aclose()
            await client.aclose()

    return StreamingResponse(relay(), media_type="text/event-stream")
