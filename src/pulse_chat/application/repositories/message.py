from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from pulse_chat.domain.entities.message import Message, Reaction


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def list_messages(self, conversation_id: UUID) -> list[Message]: ...

    async def last_messages(
        self, conversation_ids: list[UUID]
    ) -> dict[UUID, Message]: ...

    async def count_unread(
        self,
        conversation_ids: list[UUID],
        user_id: str,
        read_marks: dict[UUID, datetime],
    ) -> dict[UUID, int]:
        """Count messages from other senders newer than each conversation's read mark.

        Conversations missing from ``read_marks`` count every message. Only
        conversations with a non-zero count appear in the result.
        """
        ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def get_for_update(self, message_id: UUID) -> Message | None:
        """Load a message and lock its row until the unit of work ends."""
        ...

    async def mark_deleted(self, message_id: UUID) -> None:
        """Set is_deleted and clear reactions in a single write."""
        ...

    async def set_reactions(
        self, message_id: UUID, reactions: tuple[Reaction, ...]
    ) -> None: ...
