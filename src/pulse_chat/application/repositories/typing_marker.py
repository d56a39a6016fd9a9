from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from pulse_chat.domain.entities.typing_marker import TypingMarker


class TypingReader(Protocol):
    async def list_for_conversation(
        self, conversation_id: UUID, *, excluding_user_id: str
    ) -> list[TypingMarker]: ...


class TypingWriter(Protocol):
    async def upsert(self, conversation_id: UUID, user_id: str, ts: datetime) -> None: ...

    async def delete(self, conversation_id: UUID, user_id: str) -> None:
        """Remove the marker; absence is not an error."""
        ...

    async def purge_older_than(self, cutoff: datetime) -> int: ...
