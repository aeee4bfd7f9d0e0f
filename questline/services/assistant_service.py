"""
questline.services.assistant_service — AI Co-Founder Request Building
======================================================================

Shared by both sides of the chat:

* the **client** serializes a :class:`ChatRequest` and maps the endpoint's
  status codes with :func:`error_for_status`;
* the **proxy route** validates the same model, turns it into an
  OpenAI-compatible ``messages`` list with the co-founder system prompt, and
  opens the upstream stream with :func:`open_upstream_stream`.

The upstream body is relayed untouched; decoding happens in
:mod:`questline.engine.stream` on the client.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from pydantic import BaseModel, ConfigDict, Field

from questline.constants import DEFAULT_USER_NAME, HISTORY_LIMIT
from questline.database.models import MessageRole
from questline.errors import QuotaExhaustedError, RateLimitError, TransportError

if TYPE_CHECKING:
    from questline.config import QuestlineConfig

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request schema
# ---------------------------------------------------------------------------
class ChatContext(BaseModel):
    """Progress snapshot the assistant sees.  Wire names are camelCase."""

    model_config = ConfigDict(populate_by_name=True)

    user_name: str = Field(DEFAULT_USER_NAME, alias="userName")
    level: int = 1
    total_xp: int = Field(0, alias="totalXP")
    streak: int = 0
    active_quests: list[str] = Field(default_factory=list, alias="activeQuests")
    completed_quests_count: int = Field(0, alias="completedQuestsCount")


class HistoryItem(BaseModel):
    role: MessageRole
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1)
    context: ChatContext = Field(default_factory=ChatContext)
    history: list[HistoryItem] = Field(default_factory=list)

    def to_payload(self, history_limit: int = HISTORY_LIMIT) -> dict:
        """JSON body for the streaming endpoint, history capped to the tail."""
        payload = self.model_dump(mode="json", by_alias=True)
        payload["history"] = payload["history"][-history_limit:] if history_limit else []
        return payload


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------
def error_for_status(status_code: int, detail: str | None = None) -> TransportError | None:
    """Map a non-2xx status to the matching transport error (None for 2xx)."""
    if 200 <= status_code < 300:
        return None
    if status_code == 429:
        return RateLimitError(detail)
    if status_code == 402:
        return QuotaExhaustedError(detail)
    return TransportError(detail or f"Assistant endpoint returned {status_code}",
                          status_code=status_code)


# ---------------------------------------------------------------------------
# Prompt building (proxy side)
# ---------------------------------------------------------------------------
def build_system_prompt(context: ChatContext) -> str:
    """Co-founder persona plus the user's current progress."""
    active = ", ".join(context.active_quests) if context.active_quests else "None yet"
    return (
        "You are an AI co-founder and business coach for startup founders. "
        "You are knowledgeable, supportive and focused on helping founders "
        "execute.\n"
        "\n"
        "Current user context:\n"
        f"- Name: {context.user_name}\n"
        f"- Level: {context.level} (earned {context.total_xp} XP total)\n"
        f"- Current streak: {context.streak} days\n"
        f"- Active quests: {active}\n"
        f"- Completed quests: {context.completed_quests_count}\n"
        "\n"
        "Your role:\n"
        "1. Help prioritize tasks and suggest what to focus on\n"
        "2. Give strategic business advice and coaching\n"
        "3. Act as an accountability partner\n"
        "4. Celebrate wins and keep them motivated through tough stretches\n"
        "5. Break big goals down into actionable quests\n"
        "6. Keep continuity with earlier parts of the conversation\n"
        "\n"
        "Keep responses concise but insightful. Be encouraging but honest. "
        "When they ask about their progress, reference their actual stats. "
        "Suggest new quests when appropriate."
    )


def build_messages(request: ChatRequest, history_limit: int = HISTORY_LIMIT) -> list[dict]:
    """System prompt, capped history, then the new user message."""
    history = request.history[-history_limit:] if history_limit else []
    return [
        {"role": "system", "content": build_system_prompt(request.context)},
        *({"role": item.role.value, "content": item.content} for item in history),
        {"role": MessageRole.USER.value, "content": request.message},
    ]


# ---------------------------------------------------------------------------
# Upstream gateway (proxy side)
# ---------------------------------------------------------------------------
async def open_upstream_stream(
    client: httpx.AsyncClient,
    config: QuestlineConfig,
    api_key: str,
    request: ChatRequest,
) -> httpx.Response:
    """Start a streaming completion against the upstream gateway.

    Returns the open response; the caller owns it and must ``aclose()`` it.

    Raises
    ------
    RateLimitError, QuotaExhaustedError, TransportError
        On a non-2xx upstream status or a connection failure.
    """
    messages = build_messages(request, config.history_limit)
    logger.info("Sending request to AI gateway with %d messages", len(messages))

    upstream_request = client.build_request(
        "POST",
        config.gateway_url,
        headers={"Authorization": f"Bearer {api_key}"},
        json={"model": config.assistant_model, "messages": messages, "stream": True},
    )
    try:
        response = await client.send(upstream_request, stream=True)
    except httpx.HTTPError as exc:
        logger.error("AI gateway unreachable: %s", exc)
        raise TransportError(f"AI gateway unreachable: {exc}") from exc

    error = error_for_status(response.status_code)
    if error is not None:
        body = await response.aread()
        await response.aclose()
        logger.error(
            "AI gateway error: %d %s", response.status_code,
            body.decode("utf-8", errors="replace")[:500],
        )
        raise error
    return response
