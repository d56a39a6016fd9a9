from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.application.repositories.outbox import OutboxRecord
from pulse_chat.infrastructure.db.models.outbox import OutboxEventModel


class OutboxWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        model = OutboxEventModel(event_type=event_type, payload=payload)
        self._session.add(model)
        await self._session.flush()

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        stmt = (
            select(OutboxEventModel)
            .where(
                OutboxEventModel.status.in_(["pending", "failed"]),
                (
                    OutboxEventModel.next_retry_at.is_(None)
                    | (OutboxEventModel.next_retry_at <= datetime.now(timezone.utc))
                ),
            )
            .order_by(OutboxEventModel.created_at.asc())
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        result = await self._session.execute(stmt)
        rows = result.scalars().all()

        if rows:
            ids = [r.id for r in rows]
            await self._session.execute(
                update(OutboxEventModel)
                .where(OutboxEventModel.id.in_(ids))
                .values(status="processing")
            )
            await self._session.flush()

        return [
            OutboxRecord(
                id=r.id,
                event_type=r.event_type,
                payload=r.payload,
                attempts=r.attempts,
            )
            for r in rows
        ]

    async def mark_sent(self, ids: list[int]) -> None:
        if not ids:
            return
        stmt = (
            update(OutboxEventModel)
            .where(OutboxEventModel.id.in_(ids))
            .values(status="sent", published_at=datetime.now(timezone.utc))
        )
        await self._session.execute(stmt)

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        stmt = (
            update(OutboxEventModel)
            .where(OutboxEventModel.id == record_id)
            .values(
                status="failed",
                attempts=OutboxEventModel.attempts + 1,
                next_retry_at=next_retry_at,
            )
        )
        await self._session.execute(stmt)

    async def purge_sent(self, before: datetime) -> int:
        stmt = delete(OutboxEventModel).where(
            OutboxEventModel.status == "sent",
            OutboxEventModel.published_at < before,
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0
