from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.domain.entities.typing_marker import TypingMarker
from pulse_chat.infrastructure.db.models.typing_marker import TypingMarkerModel


class TypingReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_conversation(
        self,
        conversation_id: UUID,
        *,
        excluding_user_id: str,
    ) -> list[TypingMarker]:
        stmt = select(TypingMarkerModel).where(
            TypingMarkerModel.conversation_id == conversation_id,
            TypingMarkerModel.user_id != excluding_user_id,
        )
        result = await self._session.execute(stmt)
        return [
            TypingMarker(
                conversation_id=m.conversation_id,
                user_id=m.user_id,
                last_typed=m.last_typed,
            )
            for m in result.scalars().all()
        ]


class TypingWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(self, conversation_id: UUID, user_id: str, ts: datetime) -> None:
        stmt = (
            pg_insert(TypingMarkerModel)
            .values(conversation_id=conversation_id, user_id=user_id, last_typed=ts)
            .on_conflict_do_update(
                constraint="uq_typing_marker_member",
                set_={"last_typed": ts},
            )
        )
        await self._session.execute(stmt)

    async def delete(self, conversation_id: UUID, user_id: str) -> None:
        stmt = delete(TypingMarkerModel).where(
            TypingMarkerModel.conversation_id == conversation_id,
            TypingMarkerModel.user_id == user_id,
        )
        await self._session.execute(stmt)

    async def purge_older_than(self, cutoff: datetime) -> int:
        stmt = delete(TypingMarkerModel).where(TypingMarkerModel.last_typed < cutoff)
        result = await self._session.execute(stmt)
        return result.rowcount or 0
