from __future__ import annotations

from pulse_chat.domain.entities.conversation import Conversation
from pulse_chat.infrastructure.db.models.conversation import ConversationModel
from pulse_chat.infrastructure.db.models.participant import ParticipantModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        participants=tuple(p.user_id for p in model.participants),
        is_group=model.is_group,
        group_name=model.group_name,
        direct_key=model.direct_key,
        last_message_time=model.last_message_time,
        created_at=model.created_at,
    )


def participants_to_models(entity: Conversation) -> list[ParticipantModel]:
    return [
        ParticipantModel(
            conversation_id=entity.id,
            user_id=user_id,
            position=position,
            joined_at=entity.created_at,
        )
        for position, user_id in enumerate(entity.participants)
    ]


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(
        id=entity.id,
        is_group=entity.is_group,
        group_name=entity.group_name,
        direct_key=entity.direct_key,
        last_message_time=entity.last_message_time,
        created_at=entity.created_at,
        participants=participants_to_models(entity),
    )
