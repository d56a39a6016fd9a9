from __future__ import annotations

import asyncio
import uuid

import pytest

from pulse_chat.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from pulse_chat.domain.value_objects.enums import ChangeEvent
from pulse_chat.services import conversation_service
from tests.conftest import FakeUoW, make_conversation


@pytest.mark.asyncio
async def test_direct_conversation_created_once(alice, bob, clock):
    uow = FakeUoW()

    conv, created = await conversation_service.get_or_create_direct_conversation(
        alice.external_id, bob.external_id, uow, clock=clock,
    )

    assert created is True
    assert conv.participants == ("user_alice", "user_bob")
    assert conv.is_group is False
    assert conv.last_message_time == clock.now()
    assert uow._committed is True
    assert uow.outbox.event_types() == [ChangeEvent.CONVERSATION_CREATED]


@pytest.mark.asyncio
async def test_direct_conversation_is_symmetric(alice, bob, clock):
    uow = FakeUoW()

    first, _ = await conversation_service.get_or_create_direct_conversation(
        alice.external_id, bob.external_id, uow, clock=clock,
    )
    uow._committed = False
    second, created = await conversation_service.get_or_create_direct_conversation(
        bob.external_id, alice.external_id, uow, clock=clock,
    )

    assert created is False
    assert second.id == first.id
    assert uow._committed is False
    assert len(uow.conversations._store) == 1


@pytest.mark.asyncio
async def test_concurrent_direct_requests_share_conversation(alice, bob, clock):
    first_uow = FakeUoW()
    second_uow = FakeUoW(conversations=first_uow.conversations)

    (conv_a, created_a), (conv_b, created_b) = await asyncio.gather(
        conversation_service.get_or_create_direct_conversation(
            alice.external_id, bob.external_id, first_uow, clock=clock,
        ),
        conversation_service.get_or_create_direct_conversation(
            bob.external_id, alice.external_id, second_uow, clock=clock,
        ),
    )

    assert conv_a.id == conv_b.id
    assert sorted([created_a, created_b]) == [False, True]
    assert len(first_uow.conversations._store) == 1


@pytest.mark.asyncio
async def test_direct_conversation_with_self_rejected(alice):
    with pytest.raises(ValidationError):
        await conversation_service.get_or_create_direct_conversation(
            alice.external_id, alice.external_id, FakeUoW(),
        )


@pytest.mark.asyncio
async def test_direct_conversation_requires_other_user(alice):
    with pytest.raises(ValidationError):
        await conversation_service.get_or_create_direct_conversation(
            alice.external_id, "", FakeUoW(),
        )


@pytest.mark.asyncio
async def test_group_creator_comes_first_and_duplicates_dropped(alice, clock):
    uow = FakeUoW()

    conv = await conversation_service.create_group_conversation(
        alice.external_id,
        ["user_bob", "user_carol", "user_bob", "user_alice"],
        "  Team ",
        uow,
        clock=clock,
    )

    assert conv.participants == ("user_alice", "user_bob", "user_carol")
    assert conv.is_group is True
    assert conv.group_name == "Team"
    assert conv.direct_key is None
    assert uow._committed is True


@pytest.mark.asyncio
async def test_group_without_other_members_rejected(alice):
    uow = FakeUoW()

    with pytest.raises(ValidationError):
        await conversation_service.create_group_conversation(
            alice.external_id, [], "Solo", uow,
        )
    with pytest.raises(ValidationError):
        await conversation_service.create_group_conversation(
            alice.external_id, [alice.external_id], "Solo", uow,
        )

    assert uow.conversations._store == {}


@pytest.mark.asyncio
async def test_group_requires_name(alice):
    with pytest.raises(ValidationError):
        await conversation_service.create_group_conversation(
            alice.external_id, ["user_bob"], "   ", FakeUoW(),
        )


@pytest.mark.asyncio
async def test_list_user_conversations_newest_activity_first(alice, clock):
    uow = FakeUoW()
    older = uow.add_conversation(make_conversation(last_message_time=clock.now()))
    newer = uow.add_conversation(make_conversation(
        participants=("user_alice", "user_carol"),
        last_message_time=clock.advance(minutes=5),
    ))
    uow.add_conversation(make_conversation(participants=("user_bob", "user_carol")))

    result = await conversation_service.list_user_conversations(alice.external_id, uow)

    assert [c.id for c in result] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_get_conversation_not_found(alice):
    with pytest.raises(NotFoundError):
        await conversation_service.get_conversation(uuid.uuid4(), alice.external_id, FakeUoW())


@pytest.mark.asyncio
async def test_get_conversation_forbidden_for_outsider():
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation())

    with pytest.raises(ForbiddenError):
        await conversation_service.get_conversation(conv.id, "user_mallory", uow)
