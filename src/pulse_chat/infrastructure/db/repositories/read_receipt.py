from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.infrastructure.db.models.read_receipt import ReadReceiptModel


class ReadReceiptReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_read_marks(
        self,
        user_id: str,
        conversation_ids: list[UUID],
    ) -> dict[UUID, datetime]:
        stmt = select(
            ReadReceiptModel.conversation_id,
            ReadReceiptModel.last_read_time,
        ).where(
            ReadReceiptModel.user_id == user_id,
            ReadReceiptModel.conversation_id.in_(conversation_ids),
        )
        result = await self._session.execute(stmt)
        return {cid: ts for cid, ts in result.all()}


class ReadReceiptWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert_last_read(
        self,
        conversation_id: UUID,
        user_id: str,
        ts: datetime,
    ) -> None:
        stmt = (
            pg_insert(ReadReceiptModel)
            .values(
                conversation_id=conversation_id,
                user_id=user_id,
                last_read_time=ts,
            )
            .on_conflict_do_update(
                constraint="uq_read_receipt_member",
                set_={"last_read_time": ts},
            )
        )
        await self._session.execute(stmt)
