from __future__ import annotations

import uuid
from dataclasses import replace

from pulse_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from pulse_chat.application.policies.permissions import assert_conversation_access
from pulse_chat.application.ports.clock import Clock, system_clock
from pulse_chat.application.uow import UnitOfWork
from pulse_chat.domain.entities.conversation import Conversation
from pulse_chat.domain.entities.message import Message, toggle_reaction
from pulse_chat.domain.value_objects.enums import ChangeEvent


def _updated_payload(
    message: Message,
    conversation: Conversation,
    action: str,
) -> dict[str, object]:
    return {
        "message_id": str(message.id),
        "conversation_id": str(message.conversation_id),
        "participants": list(conversation.participants),
        "action": action,
    }


async def send_message(
    conversation_id: uuid.UUID,
    sender_id: str,
    content: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> Message:
    """Append a message and bump the conversation in the same transaction."""
    conversation = assert_conversation_access(
        sender_id, await uow.conversations.get_by_id(conversation_id),
    )
    if not content or not content.strip():
        raise ValidationError("Message content is empty")

    now = clock.now()
    msg = Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id,
        sender_id=sender_id,
        content=content,
        is_deleted=False,
        reactions=(),
        created_at=now,
    )
    msg = await uow.messages_w.create(msg)
    await uow.conversations_w.touch_last_message_time(conversation_id, now)
    # sending ends the sender's typing state
    await uow.typing_w.delete(conversation_id, sender_id)

    await uow.outbox.add(
        ChangeEvent.MESSAGE_CREATED,
        {
            "message_id": str(msg.id),
            "conversation_id": str(conversation_id),
            "sender_id": sender_id,
            "participants": list(conversation.participants),
        },
    )
    await uow.commit()
    return msg


async def list_messages(
    conversation_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
) -> list[Message]:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)
    return await uow.messages.list_messages(conversation_id)


async def delete_message(
    message_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
) -> Message:
    """Soft-delete a message. Only its sender may do so.

    Deleting an already deleted message succeeds without writing anything.
    """
    msg = await uow.messages_w.get_for_update(message_id)
    if msg is None:
        raise NotFoundError("Message not found")
    if msg.sender_id != user_id:
        raise ForbiddenError("Only the sender can delete this message")
    if msg.is_deleted:
        return msg

    conversation = assert_conversation_access(
        user_id, await uow.conversations.get_by_id(msg.conversation_id),
    )
    await uow.messages_w.mark_deleted(message_id)
    await uow.outbox.add(
        ChangeEvent.MESSAGE_UPDATED, _updated_payload(msg, conversation, "deleted"),
    )
    await uow.commit()
    return replace(msg, is_deleted=True, reactions=())


async def toggle_message_reaction(
    message_id: uuid.UUID,
    user_id: str,
    emoji: str,
    uow: UnitOfWork,
) -> Message:
    """Toggle ``emoji`` for ``user_id``; reacting to a deleted message is a no-op."""
    if not emoji or not emoji.strip():
        raise ValidationError("emoji is required")

    msg = await uow.messages_w.get_for_update(message_id)
    if msg is None:
        raise NotFoundError("Message not found")

    conversation = assert_conversation_access(
        user_id, await uow.conversations.get_by_id(msg.conversation_id),
    )
    if msg.is_deleted:
        return msg

    reactions = toggle_reaction(msg.reactions, user_id, emoji)
    await uow.messages_w.set_reactions(message_id, reactions)
    await uow.outbox.add(
        ChangeEvent.MESSAGE_UPDATED, _updated_payload(msg, conversation, "reaction"),
    )
    await uow.commit()
    return replace(msg, reactions=reactions)


async def get_unread_count(
    conversation_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
) -> int:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)
    marks = await uow.read_receipts.get_read_marks(user_id, [conversation_id])
    counts = await uow.messages.count_unread([conversation_id], user_id, marks)
    return counts.get(conversation_id, 0)


async def get_all_unread_counts(user_id: str, uow: UnitOfWork) -> dict[uuid.UUID, int]:
    """Unread counts for every conversation of the user; zero counts are omitted."""
    conversations = await uow.conversations.list_for_user(user_id)
    ids = [c.id for c in conversations]
    if not ids:
        return {}
    marks = await uow.read_receipts.get_read_marks(user_id, ids)
    return await uow.messages.count_unread(ids, user_id, marks)


async def get_last_messages(
    conversation_ids: list[uuid.UUID],
    user_id: str,
    uow: UnitOfWork,
) -> dict[uuid.UUID, Message]:
    """Latest message per conversation, skipping conversations the user is not in."""
    wanted = list(dict.fromkeys(conversation_ids))
    if not wanted:
        return {}
    conversations = await uow.conversations.get_by_ids(wanted)
    allowed = [c.id for c in conversations if c.has_participant(user_id)]
    if not allowed:
        return {}
    return await uow.messages.last_messages(allowed)
