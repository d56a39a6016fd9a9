from __future__ import annotations

from enum import StrEnum


class ChangeEvent(StrEnum):
    """Change notifications written to the outbox and fanned out to clients."""

    CONVERSATION_CREATED = "chat.conversation_created"
    MESSAGE_CREATED = "chat.message_created"
    MESSAGE_UPDATED = "chat.message_updated"
    READ = "chat.read"
    TYPING = "chat.typing"
    USER_UPDATED = "user.updated"
    PRESENCE_CHANGED = "user.presence_changed"
