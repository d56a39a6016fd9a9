from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from pulse_chat.domain.entities.message import Message


class SendMessageRequest(BaseModel):
    content: str


class ReactionRequest(BaseModel):
    emoji: str


class ReactionResponse(BaseModel):
    user_id: str
    emoji: str

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    id: UUID
    conversation_id: UUID
    sender_id: str
    content: str | None  # null once deleted
    is_deleted: bool
    reactions: list[ReactionResponse]
    created_at: datetime

    @classmethod
    def from_entity(cls, msg: Message) -> MessageResponse:
        return cls(
            id=msg.id,
            conversation_id=msg.conversation_id,
            sender_id=msg.sender_id,
            content=msg.visible_content,
            is_deleted=msg.is_deleted,
            reactions=[ReactionResponse.model_validate(r) for r in msg.reactions],
            created_at=msg.created_at,
        )
