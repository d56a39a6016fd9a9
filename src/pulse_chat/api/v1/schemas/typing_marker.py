from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class TypingRequest(BaseModel):
    is_typing: bool


class TypingUserResponse(BaseModel):
    user_id: str
    last_typed: datetime

    model_config = {"from_attributes": True}
