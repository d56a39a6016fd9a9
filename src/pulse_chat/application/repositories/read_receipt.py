from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID


class ReadReceiptReader(Protocol):
    async def get_read_marks(
        self, user_id: str, conversation_ids: list[UUID]
    ) -> dict[UUID, datetime]: ...


class ReadReceiptWriter(Protocol):
    async def upsert_last_read(
        self,
        conversation_id: UUID,
        user_id: str,
        ts: datetime,
    ) -> None: ...
