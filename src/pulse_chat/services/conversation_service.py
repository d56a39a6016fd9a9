from __future__ import annotations

import uuid

from pulse_chat.application.exceptions import ValidationError
from pulse_chat.application.policies.permissions import assert_conversation_access
from pulse_chat.application.ports.clock import Clock, system_clock
from pulse_chat.application.uow import UnitOfWork
from pulse_chat.domain.entities.conversation import Conversation, direct_key
from pulse_chat.domain.value_objects.enums import ChangeEvent


def _created_payload(conversation: Conversation) -> dict[str, object]:
    return {
        "conversation_id": str(conversation.id),
        "participants": list(conversation.participants),
        "is_group": conversation.is_group,
    }


async def get_or_create_direct_conversation(
    user_id: str,
    other_user_id: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> tuple[Conversation, bool]:
    """Return the direct conversation between two users, creating it if needed.

    Returns (conversation, created). Concurrent callers for the same pair all
    receive the same conversation.
    """
    if not other_user_id:
        raise ValidationError("other_user_id is required")
    if user_id == other_user_id:
        raise ValidationError("Cannot start a conversation with yourself")

    key = direct_key(user_id, other_user_id)
    existing = await uow.conversations.get_direct(key)
    if existing is not None:
        return existing, False

    now = clock.now()
    conversation = Conversation(
        id=uuid.uuid4(),
        participants=(user_id, other_user_id),
        is_group=False,
        group_name=None,
        direct_key=key,
        last_message_time=now,
        created_at=now,
    )
    conversation, created = await uow.conversations_w.create_direct_if_not_exists(
        conversation,
    )
    if created:
        await uow.outbox.add(
            ChangeEvent.CONVERSATION_CREATED, _created_payload(conversation),
        )
        await uow.commit()
    return conversation, created


async def create_group_conversation(
    creator_id: str,
    member_ids: list[str],
    group_name: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> Conversation:
    name = group_name.strip()
    if not name:
        raise ValidationError("group_name is required")

    participants = tuple(dict.fromkeys([creator_id, *member_ids]))
    if len(participants) < 2:
        raise ValidationError("A group needs at least one other member")

    now = clock.now()
    conversation = Conversation(
        id=uuid.uuid4(),
        participants=participants,
        is_group=True,
        group_name=name,
        direct_key=None,
        last_message_time=now,
        created_at=now,
    )
    conversation = await uow.conversations_w.create(conversation)
    await uow.outbox.add(
        ChangeEvent.CONVERSATION_CREATED, _created_payload(conversation),
    )
    await uow.commit()
    return conversation


async def list_user_conversations(user_id: str, uow: UnitOfWork) -> list[Conversation]:
    return await uow.conversations.list_for_user(user_id)


async def get_conversation(
    conversation_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
) -> Conversation:
    conversation = await uow.conversations.get_by_id(conversation_id)
    return assert_conversation_access(user_id, conversation)
