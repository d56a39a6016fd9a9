from __future__ import annotations

from datetime import datetime
from typing import Protocol

from pulse_chat.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_external_id(self, external_id: str) -> User | None: ...

    async def list_all_except(self, external_id: str) -> list[User]: ...

    async def list_by_external_ids(self, external_ids: list[str]) -> list[User]: ...


class UserWriter(Protocol):
    async def upsert(
        self,
        external_id: str,
        name: str,
        email: str,
        image_url: str,
        now: datetime,
    ) -> User:
        """Insert with presence defaults, or update profile fields only."""
        ...

    async def set_online_status(
        self, external_id: str, is_online: bool, ts: datetime
    ) -> bool:
        """Return False when the user is unknown."""
        ...

    async def mark_stale_offline(self, cutoff: datetime) -> list[str]:
        """Flip users last seen before cutoff offline. Return their external ids."""
        ...
