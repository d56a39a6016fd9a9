from __future__ import annotations

from typing import Protocol

from pulse_chat.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from pulse_chat.application.repositories.message import MessageReader, MessageWriter
from pulse_chat.application.repositories.outbox import OutboxWriter
from pulse_chat.application.repositories.read_receipt import (
    ReadReceiptReader,
    ReadReceiptWriter,
)
from pulse_chat.application.repositories.typing_marker import TypingReader, TypingWriter
from pulse_chat.application.repositories.user import UserReader, UserWriter


class UnitOfWork(Protocol):
    users: UserReader
    users_w: UserWriter
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    read_receipts: ReadReceiptReader
    read_receipts_w: ReadReceiptWriter
    typing: TypingReader
    typing_w: TypingWriter
    outbox: OutboxWriter

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
    async def flush(self) -> None: ...
