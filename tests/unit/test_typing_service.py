from __future__ import annotations

from datetime import timedelta

import pytest

from pulse_chat.application.exceptions import ForbiddenError
from pulse_chat.domain.value_objects.enums import ChangeEvent
from pulse_chat.services import typing_service
from tests.conftest import FakeUoW, make_conversation


@pytest.fixture
def uow_with_group():
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation(
        participants=("user_alice", "user_bob", "user_carol"),
        is_group=True,
        group_name="Team",
    ))
    return uow, conv


@pytest.mark.asyncio
async def test_typing_visible_to_others_not_self(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group

    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)

    seen_by_bob = await typing_service.list_typing_users(conv.id, bob.external_id, uow, clock=clock)
    seen_by_alice = await typing_service.list_typing_users(conv.id, alice.external_id, uow, clock=clock)
    assert [m.user_id for m in seen_by_bob] == ["user_alice"]
    assert seen_by_alice == []
    assert uow.outbox.event_types() == [ChangeEvent.TYPING]


@pytest.mark.asyncio
async def test_typing_expires_after_window(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)

    clock.advance(milliseconds=1999)
    assert len(await typing_service.list_typing_users(conv.id, bob.external_id, uow, clock=clock)) == 1

    clock.advance(milliseconds=1)
    assert await typing_service.list_typing_users(conv.id, bob.external_id, uow, clock=clock) == []
    # expired markers are filtered on read, not removed
    assert (conv.id, "user_alice") in uow.typing._markers


@pytest.mark.asyncio
async def test_typing_refresh_extends_window(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)
    clock.advance(milliseconds=1500)
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)
    clock.advance(milliseconds=1500)

    result = await typing_service.list_typing_users(conv.id, bob.external_id, uow, clock=clock)

    assert [m.user_id for m in result] == ["user_alice"]
    assert len(uow.typing._markers) == 1


@pytest.mark.asyncio
async def test_stop_typing_removes_marker(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)

    await typing_service.set_typing(conv.id, alice.external_id, False, uow, clock=clock)
    await typing_service.set_typing(conv.id, alice.external_id, False, uow, clock=clock)

    assert await typing_service.list_typing_users(conv.id, bob.external_id, uow, clock=clock) == []


@pytest.mark.asyncio
async def test_typing_by_outsider_forbidden(uow_with_group):
    uow, conv = uow_with_group

    with pytest.raises(ForbiddenError):
        await typing_service.set_typing(conv.id, "user_mallory", True, uow)


@pytest.mark.asyncio
async def test_purge_expired_markers(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)
    clock.advance(seconds=3)
    await typing_service.set_typing(conv.id, bob.external_id, True, uow, clock=clock)

    removed = await typing_service.purge_expired_markers(uow, clock=clock)

    assert removed == 1
    assert list(uow.typing._markers) == [(conv.id, "user_bob")]


@pytest.mark.asyncio
async def test_custom_window(alice, bob, clock, uow_with_group):
    uow, conv = uow_with_group
    await typing_service.set_typing(conv.id, alice.external_id, True, uow, clock=clock)
    clock.advance(seconds=4)

    result = await typing_service.list_typing_users(
        conv.id, bob.external_id, uow, window=timedelta(seconds=5), clock=clock,
    )

    assert len(result) == 1
