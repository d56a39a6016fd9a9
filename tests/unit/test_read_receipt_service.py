from __future__ import annotations

import uuid

import pytest

from pulse_chat.application.exceptions import ForbiddenError, NotFoundError
from pulse_chat.domain.value_objects.enums import ChangeEvent
from pulse_chat.services import read_receipt_service
from tests.conftest import FakeUoW, make_conversation


@pytest.mark.asyncio
async def test_mark_as_read_stores_watermark(bob, clock):
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation())

    receipt = await read_receipt_service.mark_as_read(conv.id, bob.external_id, uow, clock=clock)

    assert receipt.user_id == "user_bob"
    assert receipt.last_read_time == clock.now()
    assert uow.read_receipts._marks[(conv.id, "user_bob")] == clock.now()
    assert uow._committed is True
    assert uow.outbox.event_types() == [ChangeEvent.READ]


@pytest.mark.asyncio
async def test_mark_as_read_overwrites_previous(bob, clock):
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation())

    await read_receipt_service.mark_as_read(conv.id, bob.external_id, uow, clock=clock)
    clock.advance(minutes=1)
    await read_receipt_service.mark_as_read(conv.id, bob.external_id, uow, clock=clock)

    assert uow.read_receipts._marks == {(conv.id, "user_bob"): clock.now()}


@pytest.mark.asyncio
async def test_mark_as_read_requires_membership():
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation())

    with pytest.raises(ForbiddenError):
        await read_receipt_service.mark_as_read(conv.id, "user_mallory", uow)
    with pytest.raises(NotFoundError):
        await read_receipt_service.mark_as_read(uuid.uuid4(), "user_bob", uow)

    assert uow.read_receipts._marks == {}


@pytest.mark.asyncio
async def test_read_event_carries_participants(bob, clock):
    uow = FakeUoW()
    conv = uow.add_conversation(make_conversation())

    await read_receipt_service.mark_as_read(conv.id, bob.external_id, uow, clock=clock)

    assert uow.outbox._records[0]["payload"]["participants"] == ["user_alice", "user_bob"]
