from __future__ import annotations

from typing import Any

from pulse_chat.domain.entities.message import Message, Reaction
from pulse_chat.infrastructure.db.models.message import MessageModel


def reactions_to_json(reactions: tuple[Reaction, ...]) -> list[dict[str, Any]]:
    return [{"user_id": r.user_id, "emoji": r.emoji} for r in reactions]


def reactions_from_json(raw: list[dict[str, Any]] | None) -> tuple[Reaction, ...]:
    return tuple(Reaction(user_id=r["user_id"], emoji=r["emoji"]) for r in raw or [])


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        content=model.content,
        is_deleted=model.is_deleted,
        reactions=reactions_from_json(model.reactions),
        created_at=model.created_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        conversation_id=entity.conversation_id,
        sender_id=entity.sender_id,
        content=entity.content,
        is_deleted=entity.is_deleted,
        reactions=reactions_to_json(entity.reactions),
        created_at=entity.created_at,
    )
