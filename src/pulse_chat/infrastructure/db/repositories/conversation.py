from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Update, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.application.exceptions import ConflictError
from pulse_chat.domain.entities.conversation import Conversation
from pulse_chat.infrastructure.db.mappers import conversation as mapper
from pulse_chat.infrastructure.db.models.conversation import ConversationModel
from pulse_chat.infrastructure.db.models.participant import ParticipantModel


def touch_last_message_stmt(conversation_id: UUID, ts: datetime) -> Update:
    # sends may commit out of order; never move the timestamp backwards
    return (
        update(ConversationModel)
        .where(ConversationModel.id == conversation_id)
        .values(last_message_time=func.greatest(ConversationModel.last_message_time, ts))
    )


async def _select_direct(session: AsyncSession, direct_key: str) -> Conversation | None:
    stmt = select(ConversationModel).where(ConversationModel.direct_key == direct_key)
    result = await session.execute(stmt)
    model = result.scalar_one_or_none()
    return mapper.model_to_entity(model) if model else None


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def get_by_ids(self, conversation_ids: list[UUID]) -> list[Conversation]:
        stmt = select(ConversationModel).where(ConversationModel.id.in_(conversation_ids))
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def get_direct(self, direct_key: str) -> Conversation | None:
        return await _select_direct(self._session, direct_key)

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .join(
                ParticipantModel,
                ParticipantModel.conversation_id == ConversationModel.id,
            )
            .where(ParticipantModel.user_id == user_id)
            .order_by(ConversationModel.last_message_time.desc(), ConversationModel.id)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def create_direct_if_not_exists(
        self,
        conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert a direct conversation guarded by the pair key. Returns (conversation, created_flag)."""
        assert conversation.direct_key is not None
        stmt = (
            pg_insert(ConversationModel)
            .values(
                id=conversation.id,
                is_group=False,
                group_name=None,
                direct_key=conversation.direct_key,
                last_message_time=conversation.last_message_time,
                created_at=conversation.created_at,
            )
            .on_conflict_do_nothing(constraint="uq_conversations_direct_key")
            .returning(ConversationModel.id)
        )
        result = await self._session.execute(stmt)
        if result.scalar_one_or_none() is not None:
            self._session.add_all(mapper.participants_to_models(conversation))
            await self._session.flush()
            return conversation, True

        # Lost the race: another transaction committed the pair first
        existing = await _select_direct(self._session, conversation.direct_key)
        if existing is None:
            raise ConflictError("Direct conversation exists but could not be loaded")
        return existing, False

    async def touch_last_message_time(
        self,
        conversation_id: UUID,
        ts: datetime,
    ) -> None:
        await self._session.execute(touch_last_message_stmt(conversation_id, ts))
