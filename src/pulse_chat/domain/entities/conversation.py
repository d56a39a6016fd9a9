from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


def direct_key(user_a: str, user_b: str) -> str:
    """Normalized key for an unordered pair of participants.

    The shorter-sorting id is length-prefixed so that no two distinct pairs
    can collide regardless of the characters the identity provider uses.
    """
    lo, hi = sorted((user_a, user_b))
    return f"{len(lo)}:{lo}:{hi}"


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    participants: tuple[str, ...]
    is_group: bool
    group_name: str | None
    direct_key: str | None
    last_message_time: datetime
    created_at: datetime

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participants
