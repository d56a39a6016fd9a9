from __future__ import annotations

from pulse_chat.application.exceptions import ForbiddenError, NotFoundError
from pulse_chat.domain.entities.conversation import Conversation


def assert_conversation_access(
    user_id: str,
    conversation: Conversation | None,
) -> Conversation:
    """Raise if conversation doesn't exist or the user is not a participant."""
    if conversation is None:
        raise NotFoundError("Conversation not found")

    if not conversation.has_participant(user_id):
        raise ForbiddenError("Not a participant of this conversation")

    return conversation
