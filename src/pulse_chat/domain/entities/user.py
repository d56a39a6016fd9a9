from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class User:
    id: UUID
    external_id: str
    name: str
    email: str
    image_url: str
    is_online: bool
    last_seen: datetime
    created_at: datetime
