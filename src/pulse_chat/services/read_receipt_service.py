from __future__ import annotations

import uuid

from pulse_chat.application.policies.permissions import assert_conversation_access
from pulse_chat.application.ports.clock import Clock, system_clock
from pulse_chat.application.uow import UnitOfWork
from pulse_chat.domain.entities.read_receipt import ReadReceipt
from pulse_chat.domain.value_objects.enums import ChangeEvent


async def mark_as_read(
    conversation_id: uuid.UUID,
    user_id: str,
    uow: UnitOfWork,
    *,
    clock: Clock = system_clock,
) -> ReadReceipt:
    """Move the user's read watermark for the conversation to now.

    Later calls overwrite earlier ones as-is; the watermark is not forced to
    be monotonic.
    """
    conversation = assert_conversation_access(
        user_id, await uow.conversations.get_by_id(conversation_id),
    )

    now = clock.now()
    await uow.read_receipts_w.upsert_last_read(conversation_id, user_id, now)
    await uow.outbox.add(
        ChangeEvent.READ,
        {
            "conversation_id": str(conversation_id),
            "user_id": user_id,
            "last_read_time": now.isoformat(),
            "participants": list(conversation.participants),
        },
    )
    await uow.commit()
    return ReadReceipt(conversation_id, user_id, now)
