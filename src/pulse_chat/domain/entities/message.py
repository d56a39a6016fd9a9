from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Reaction:
    user_id: str
    emoji: str


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    conversation_id: UUID
    sender_id: str
    content: str
    is_deleted: bool
    reactions: tuple[Reaction, ...]
    created_at: datetime

    @property
    def visible_content(self) -> str | None:
        """Content as shown to clients; deleted messages are always masked."""
        return None if self.is_deleted else self.content


def toggle_reaction(
    reactions: tuple[Reaction, ...],
    user_id: str,
    emoji: str,
) -> tuple[Reaction, ...]:
    """Return the reaction set after ``user_id`` toggles ``emoji``.

    Toggling the emoji the user already has removes it. Any other emoji
    replaces the user's previous reaction, so a user never holds more than one.
    """
    if Reaction(user_id, emoji) in reactions:
        return tuple(r for r in reactions if r != Reaction(user_id, emoji))
    others = tuple(r for r in reactions if r.user_id != user_id)
    return (*others, Reaction(user_id, emoji))
