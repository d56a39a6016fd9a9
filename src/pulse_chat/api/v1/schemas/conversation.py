from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class DirectConversationRequest(BaseModel):
    other_user_id: str


class GroupConversationRequest(BaseModel):
    member_ids: list[str] = Field(default_factory=list)
    group_name: str = ""


class LastMessagesRequest(BaseModel):
    conversation_ids: list[UUID] = Field(default_factory=list, max_length=500)


class ConversationResponse(BaseModel):
    id: UUID
    participants: list[str]
    is_group: bool
    group_name: str | None
    last_message_time: datetime
    created_at: datetime

    model_config = {"from_attributes": True}


class UnreadCountResponse(BaseModel):
    conversation_id: UUID
    count: int


class ReadReceiptResponse(BaseModel):
    conversation_id: UUID
    last_read_time: datetime
