from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

TYPING_FRESHNESS = timedelta(milliseconds=2000)


@dataclass(frozen=True, slots=True)
class TypingMarker:
    conversation_id: UUID
    user_id: str
    last_typed: datetime

    def is_fresh(self, now: datetime, window: timedelta = TYPING_FRESHNESS) -> bool:
        return now - self.last_typed < window
