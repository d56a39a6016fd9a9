from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import Select, case, func, literal, select, update
from sqlalchemy.dialects.postgresql import TIMESTAMP, distinct_on
from sqlalchemy.ext.asyncio import AsyncSession

from pulse_chat.domain.entities.message import Message, Reaction
from pulse_chat.infrastructure.db.mappers import message as mapper
from pulse_chat.infrastructure.db.models.message import MessageModel

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def last_messages_stmt(conversation_ids: list[UUID]) -> Select[tuple[MessageModel]]:
    """Newest message per conversation, ties broken by insertion order."""
    return (
        select(MessageModel)
        .where(MessageModel.conversation_id.in_(conversation_ids))
        .ext(distinct_on(MessageModel.conversation_id))
        .order_by(
            MessageModel.conversation_id,
            MessageModel.created_at.desc(),
            MessageModel.seq.desc(),
        )
    )


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, message_id: UUID) -> Message | None:
        result = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(result) if result else None

    async def list_messages(self, conversation_id: UUID) -> list[Message]:
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc(), MessageModel.seq.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    async def last_messages(self, conversation_ids: list[UUID]) -> dict[UUID, Message]:
        result = await self._session.execute(last_messages_stmt(conversation_ids))
        return {
            m.conversation_id: mapper.model_to_entity(m)
            for m in result.scalars().all()
        }

    async def count_unread(
        self,
        conversation_ids: list[UUID],
        user_id: str,
        read_marks: dict[UUID, datetime],
    ) -> dict[UUID, int]:
        epoch = literal(EPOCH, TIMESTAMP(timezone=True))
        if read_marks:
            threshold = case(read_marks, value=MessageModel.conversation_id, else_=epoch)
        else:
            threshold = epoch

        stmt = (
            select(MessageModel.conversation_id, func.count())
            .where(
                MessageModel.conversation_id.in_(conversation_ids),
                MessageModel.sender_id != user_id,
                MessageModel.is_deleted.is_(False),
                MessageModel.created_at > threshold,
            )
            .group_by(MessageModel.conversation_id)
        )
        result = await self._session.execute(stmt)
        return {cid: count for cid, count in result.all()}


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def get_for_update(self, message_id: UUID) -> Message | None:
        stmt = (
            select(MessageModel)
            .where(MessageModel.id == message_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def mark_deleted(self, message_id: UUID) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(is_deleted=True, reactions=[])
        )
        await self._session.execute(stmt)

    async def set_reactions(
        self,
        message_id: UUID,
        reactions: tuple[Reaction, ...],
    ) -> None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(reactions=mapper.reactions_to_json(reactions))
        )
        await self._session.execute(stmt)
