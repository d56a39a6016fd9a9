from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.domain.entities.user import User
from pulse_chat.infrastructure.db.mappers import user as mapper
from pulse_chat.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_external_id(self, external_id: str) -> User | None:
        stmt = select(UserModel).where(UserModel.external_id == external_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_all_except(self, external_id: str) -> list[User]:
        stmt = (
            select(UserModel)
            .where(UserModel.external_id != external_id)
            .order_by(UserModel.name, UserModel.external_id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def list_by_external_ids(self, external_ids: list[str]) -> list[User]:
        stmt = select(UserModel).where(UserModel.external_id.in_(external_ids))
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class UserWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def upsert(
        self,
        external_id: str,
        name: str,
        email: str,
        image_url: str,
        now: datetime,
    ) -> User:
        """Insert a user or refresh its profile. Presence columns are kept on conflict."""
        stmt = pg_insert(UserModel).values(
            external_id=external_id,
            name=name,
            email=email,
            image_url=image_url,
            is_online=True,
            last_seen=now,
            created_at=now,
        )
        stmt = (
            stmt.on_conflict_do_update(
                constraint="uq_users_external_id",
                set_={
                    "name": stmt.excluded.name,
                    "email": stmt.excluded.email,
                    "image_url": stmt.excluded.image_url,
                },
            )
            .returning(UserModel)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return mapper.model_to_entity(result.scalar_one())

    async def set_online_status(
        self,
        external_id: str,
        is_online: bool,
        ts: datetime,
    ) -> bool:
        stmt = (
            update(UserModel)
            .where(UserModel.external_id == external_id)
            .values(is_online=is_online, last_seen=ts)
            .returning(UserModel.id)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def mark_stale_offline(self, cutoff: datetime) -> list[str]:
        stmt = (
            update(UserModel)
            .where(UserModel.is_online.is_(True), UserModel.last_seen < cutoff)
            .values(is_online=False)
            .returning(UserModel.external_id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
