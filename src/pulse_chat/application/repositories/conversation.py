from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from pulse_chat.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: UUID) -> Conversation | None: ...

    async def get_by_ids(self, conversation_ids: list[UUID]) -> list[Conversation]: ...

    async def get_direct(self, direct_key: str) -> Conversation | None:
        """Find the direct conversation for a normalized participant pair."""
        ...

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        """All conversations the user participates in, newest activity first."""
        ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...

    async def create_direct_if_not_exists(
        self, conversation: Conversation
    ) -> tuple[Conversation, bool]:
        """Insert a direct conversation. If its pair already exists → return existing."""
        ...

    async def touch_last_message_time(
        self, conversation_id: UUID, ts: datetime
    ) -> None: ...
