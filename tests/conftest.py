"""Shared test fixtures and in-memory repositories."""
from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from pulse_chat.application.dto.principal import Principal
from pulse_chat.application.repositories.outbox import OutboxRecord
from pulse_chat.domain.entities.conversation import Conversation, direct_key
from pulse_chat.domain.entities.message import Message, Reaction
from pulse_chat.domain.entities.typing_marker import TypingMarker
from pulse_chat.domain.entities.user import User

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class FakeClock:
    current: datetime = T0

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def alice() -> Principal:
    return Principal(external_id="user_alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(external_id="user_bob")


def make_user(external_id: str = "user_alice", *, is_online: bool = True, last_seen: datetime = T0) -> User:
    return User(
        id=uuid.uuid4(),
        external_id=external_id,
        name=external_id.removeprefix("user_").title(),
        email=f"{external_id}@example.com",
        image_url="",
        is_online=is_online,
        last_seen=last_seen,
        created_at=T0,
    )


def make_conversation(
    *,
    participants: tuple[str, ...] = ("user_alice", "user_bob"),
    is_group: bool = False,
    group_name: str | None = None,
    last_message_time: datetime = T0,
) -> Conversation:
    return Conversation(
        id=uuid.uuid4(),
        participants=participants,
        is_group=is_group,
        group_name=group_name,
        direct_key=None if is_group else direct_key(*participants),
        last_message_time=last_message_time,
        created_at=T0,
    )


def make_message(
    *,
    conversation_id: UUID | None = None,
    sender_id: str = "user_alice",
    content: str = "hello",
    created_at: datetime = T0,
    is_deleted: bool = False,
    reactions: tuple[Reaction, ...] = (),
) -> Message:
    return Message(
        id=uuid.uuid4(),
        conversation_id=conversation_id or uuid.uuid4(),
        sender_id=sender_id,
        content=content,
        is_deleted=is_deleted,
        reactions=reactions,
        created_at=created_at,
    )


@dataclass
class FakeUserReader:
    _users: dict[str, User] = field(default_factory=dict)

    async def get_by_external_id(self, external_id: str) -> User | None:
        return self._users.get(external_id)

    async def list_all_except(self, external_id: str) -> list[User]:
        return sorted(
            (u for u in self._users.values() if u.external_id != external_id),
            key=lambda u: (u.name, u.external_id),
        )

    async def list_by_external_ids(self, external_ids: list[str]) -> list[User]:
        return [u for eid, u in self._users.items() if eid in external_ids]


@dataclass
class FakeUserWriter:
    _reader: FakeUserReader

    async def upsert(self, external_id: str, name: str, email: str, image_url: str, now: datetime) -> User:
        existing = self._reader._users.get(external_id)
        if existing is not None:
            user = replace(existing, name=name, email=email, image_url=image_url)
        else:
            user = User(
                id=uuid.uuid4(),
                external_id=external_id,
                name=name,
                email=email,
                image_url=image_url,
                is_online=True,
                last_seen=now,
                created_at=now,
            )
        self._reader._users[external_id] = user
        return user

    async def set_online_status(self, external_id: str, is_online: bool, ts: datetime) -> bool:
        user = self._reader._users.get(external_id)
        if user is None:
            return False
        self._reader._users[external_id] = replace(user, is_online=is_online, last_seen=ts)
        return True

    async def mark_stale_offline(self, cutoff: datetime) -> list[str]:
        flipped = []
        for eid, user in self._reader._users.items():
            if user.is_online and user.last_seen < cutoff:
                self._reader._users[eid] = replace(user, is_online=False)
                flipped.append(eid)
        return flipped


@dataclass
class FakeConversationReader:
    _store: dict[UUID, Conversation] = field(default_factory=dict)

    async def get_by_id(self, conversation_id: UUID) -> Conversation | None:
        return self._store.get(conversation_id)

    async def get_by_ids(self, conversation_ids: list[UUID]) -> list[Conversation]:
        return [c for c in self._store.values() if c.id in conversation_ids]

    async def get_direct(self, direct_key: str) -> Conversation | None:
        # yield so concurrent callers interleave like separate transactions
        await asyncio.sleep(0)
        for c in self._store.values():
            if c.direct_key == direct_key:
                return c
        return None

    async def list_for_user(self, user_id: str) -> list[Conversation]:
        mine = sorted((c for c in self._store.values() if user_id in c.participants), key=lambda c: c.id)
        return sorted(mine, key=lambda c: c.last_message_time, reverse=True)


@dataclass
class FakeConversationWriter:
    _reader: FakeConversationReader

    async def create(self, conversation: Conversation) -> Conversation:
        self._reader._store[conversation.id] = conversation
        return conversation

    async def create_direct_if_not_exists(self, conversation: Conversation) -> tuple[Conversation, bool]:
        for c in self._reader._store.values():
            if c.direct_key == conversation.direct_key:
                return c, False
        self._reader._store[conversation.id] = conversation
        return conversation, True

    async def touch_last_message_time(self, conversation_id: UUID, ts: datetime) -> None:
        conv = self._reader._store[conversation_id]
        self._reader._store[conversation_id] = replace(
            conv, last_message_time=max(conv.last_message_time, ts),
        )


@dataclass
class FakeMessageReader:
    _messages: list[Message] = field(default_factory=list)

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return next((m for m in self._messages if m.id == message_id), None)

    async def list_messages(self, conversation_id: UUID) -> list[Message]:
        return sorted(
            (m for m in self._messages if m.conversation_id == conversation_id),
            key=lambda m: m.created_at,
        )

    async def last_messages(self, conversation_ids: list[UUID]) -> dict[UUID, Message]:
        latest: dict[UUID, Message] = {}
        for m in self._messages:
            if m.conversation_id in conversation_ids:
                current = latest.get(m.conversation_id)
                if current is None or m.created_at >= current.created_at:
                    latest[m.conversation_id] = m
        return latest

    async def count_unread(
        self,
        conversation_ids: list[UUID],
        user_id: str,
        read_marks: dict[UUID, datetime],
    ) -> dict[UUID, int]:
        counts: dict[UUID, int] = {}
        for m in self._messages:
            if m.conversation_id not in conversation_ids:
                continue
            if m.sender_id == user_id or m.is_deleted:
                continue
            if m.created_at > read_marks.get(m.conversation_id, EPOCH):
                counts[m.conversation_id] = counts.get(m.conversation_id, 0) + 1
        return counts


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader

    def _swap(self, message_id: UUID, **changes: Any) -> None:
        msgs = self._reader._messages
        for i, m in enumerate(msgs):
            if m.id == message_id:
                msgs[i] = replace(m, **changes)

    async def create(self, message: Message) -> Message:
        self._reader._messages.append(message)
        return message

    async def get_for_update(self, message_id: UUID) -> Message | None:
        return await self._reader.get_by_id(message_id)

    async def mark_deleted(self, message_id: UUID) -> None:
        self._swap(message_id, is_deleted=True, reactions=())

    async def set_reactions(self, message_id: UUID, reactions: tuple[Reaction, ...]) -> None:
        self._swap(message_id, reactions=reactions)


@dataclass
class FakeReadReceiptReader:
    _marks: dict[tuple[UUID, str], datetime] = field(default_factory=dict)

    async def get_read_marks(self, user_id: str, conversation_ids: list[UUID]) -> dict[UUID, datetime]:
        return {
            cid: ts
            for (cid, uid), ts in self._marks.items()
            if uid == user_id and cid in conversation_ids
        }


@dataclass
class FakeReadReceiptWriter:
    _reader: FakeReadReceiptReader

    async def upsert_last_read(self, conversation_id: UUID, user_id: str, ts: datetime) -> None:
        self._reader._marks[(conversation_id, user_id)] = ts


@dataclass
class FakeTypingReader:
    _markers: dict[tuple[UUID, str], TypingMarker] = field(default_factory=dict)

    async def list_for_conversation(self, conversation_id: UUID, *, excluding_user_id: str) -> list[TypingMarker]:
        return [
            m for (cid, uid), m in self._markers.items()
            if cid == conversation_id and uid != excluding_user_id
        ]


@dataclass
class FakeTypingWriter:
    _reader: FakeTypingReader

    async def upsert(self, conversation_id: UUID, user_id: str, ts: datetime) -> None:
        self._reader._markers[(conversation_id, user_id)] = TypingMarker(conversation_id, user_id, ts)

    async def delete(self, conversation_id: UUID, user_id: str) -> None:
        self._reader._markers.pop((conversation_id, user_id), None)

    async def purge_older_than(self, cutoff: datetime) -> int:
        stale = [k for k, m in self._reader._markers.items() if m.last_typed < cutoff]
        for k in stale:
            del self._reader._markers[k]
        return len(stale)


@dataclass
class FakeOutboxWriter:
    _records: list[dict[str, Any]] = field(default_factory=list)

    async def add(self, event_type: str, payload: dict[str, Any]) -> None:
        self._records.append({"event_type": event_type, "payload": payload})

    async def fetch_pending(self, batch_size: int) -> list[OutboxRecord]:
        return []

    async def mark_sent(self, ids: list[int]) -> None:
        pass

    async def mark_failed(self, record_id: int, next_retry_at: datetime) -> None:
        pass

    async def purge_sent(self, before: datetime) -> int:
        return 0

    def event_types(self) -> list[str]:
        return [r["event_type"] for r in self._records]


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests. Pass readers to share state between UoWs."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    users_w: FakeUserWriter | None = None
    conversations: FakeConversationReader = field(default_factory=FakeConversationReader)
    conversations_w: FakeConversationWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    read_receipts: FakeReadReceiptReader = field(default_factory=FakeReadReceiptReader)
    read_receipts_w: FakeReadReceiptWriter | None = None
    typing: FakeTypingReader = field(default_factory=FakeTypingReader)
    typing_w: FakeTypingWriter | None = None
    outbox: FakeOutboxWriter = field(default_factory=FakeOutboxWriter)
    _committed: bool = False

    def __post_init__(self) -> None:
        if self.users_w is None:
            self.users_w = FakeUserWriter(self.users)
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)
        if self.read_receipts_w is None:
            self.read_receipts_w = FakeReadReceiptWriter(self.read_receipts)
        if self.typing_w is None:
            self.typing_w = FakeTypingWriter(self.typing)

    def add_conversation(self, conversation: Conversation) -> Conversation:
        self.conversations._store[conversation.id] = conversation
        return conversation

    def add_message(self, message: Message) -> Message:
        self.messages._messages.append(message)
        return message

    async def flush(self) -> None:
        pass

    async def commit(self) -> None:
        self._committed = True

    async def rollback(self) -> None:
        pass
