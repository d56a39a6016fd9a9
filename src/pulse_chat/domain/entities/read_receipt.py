from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class ReadReceipt:
    conversation_id: UUID
    user_id: str
    last_read_time: datetime
