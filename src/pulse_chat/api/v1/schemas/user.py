from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UpsertUserRequest(BaseModel):
    name: str = ""
    email: str = ""
    image_url: str = ""


class PresenceRequest(BaseModel):
    is_online: bool


class LookupUsersRequest(BaseModel):
    external_ids: list[str] = Field(default_factory=list, max_length=500)


class UserResponse(BaseModel):
    id: UUID
    external_id: str
    name: str
    email: str
    image_url: str
    is_online: bool
    last_seen: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
