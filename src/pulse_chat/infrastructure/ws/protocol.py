"""WebSocket message envelope models."""
from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, StrictBool


class WsInbound(BaseModel):
    """Client → Server."""

    # ping | subscribe | unsubscribe | heartbeat | visibility | typing | mark_read
    type: str
    data: dict[str, Any] = {}


class WsOutbound(BaseModel):
    """Server → Client."""

    type: str  # chat.* | user.* change events, error, pong
    data: dict[str, Any] = {}


class ConversationFrame(BaseModel):
    """Payload of subscribe, unsubscribe and mark_read."""

    conversation_id: UUID


class TypingFrame(BaseModel):
    conversation_id: UUID
    is_typing: StrictBool = True


class VisibilityFrame(BaseModel):
    visible: StrictBool


def encode_frame(event_type: str, data: dict[str, Any]) -> str:
    return WsOutbound(type=event_type, data=data).model_dump_json()
