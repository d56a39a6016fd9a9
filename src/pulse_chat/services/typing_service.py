from __future__ import annotations

import uuid
from datetime import timedelta

from pulse_chat.application.policies.permissions import assert_conversation_access
from pulse_chat.application.ports.clock import Clock, system_clock
from pulse_chat.application.uow import UnitOfWork
from pulse_chat.domain.entities.typing_marker import TYPING_FRESHNESS, TypingMarker
from pulse_chat.domain.value_objects.enums import ChangeEvent


async def set_typing(
    conversation_id: uuid.UUID,
    user_id: str,
    is_typing: bool,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> None:
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)

    if is_typing:
        await uow.typing_w.upsert(conversation_id, user_id, clock.now())
    else:
        await uow.typing_w.delete(conversation_id, user_id)

    await uow.outbox.add(
        ChangeEvent.TYPING,
        {
            "conversation_id": str(conversation_id),
            "user_id": user_id,
            "is_typing": is_typing,
        },
    )
    await uow.commit()


async def list_typing_users(
    conversation_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
    *,
    window: timedelta = TYPING_FRESHNESS,
    clock: Clock = system_clock,
) -> list[TypingMarker]:
    """Other users currently typing. Expired markers are filtered, not deleted."""
    conversation = await uow.conversations.get_by_id(conversation_id)
    assert_conversation_access(user_id, conversation)

    now = clock.now()
    markers = await uow.typing.list_for_conversation(
        conversation_id, excluding_user_id=user_id,
    )
    return [m for m in markers if m.is_fresh(now, window)]


async def purge_expired_markers(
    uow: UnitOfWork,
    *,
    window: timedelta = TYPING_FRESHNESS,
    clock: Clock = system_clock,
) -> int:
    removed = await uow.typing_w.purge_older_than(clock.now() - window)
    await uow.commit()
    return removed
