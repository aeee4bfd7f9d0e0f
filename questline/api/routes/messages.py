"""
questline.api.routes.messages — Chat transcript
================================================
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from questline.api.deps import CurrentUser, get_engine
from questline.database.models import ChatMessage, MessageRole
from questline.services import message_service

router = APIRouter(prefix="/messages", tags=["messages"])


class MessageCreate(BaseModel):
    role: MessageRole
    content: str


def message_dict(m: ChatMessage) -> dict:
    return {
        "id": str(m.id),
        "role": m.role,
        "content": m.content,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


@router.get("")
def list_messages(
    user_id: CurrentUser,
    engine=Depends(get_engine),
    limit: int | None = Query(None, ge=1, le=500),
):
    """The transcript, oldest first (optionally only the last *limit*)."""
    return [message_dict(m) for m in message_service.list_messages(engine, user_id, limit)]


@router.post("", status_code=201)
def create_message(body: MessageCreate, user_id: CurrentUser, engine=Depends(get_engine)):
    message = message_service.store_message(engine, user_id, body.role, body.content)
    return message_dict(message)
