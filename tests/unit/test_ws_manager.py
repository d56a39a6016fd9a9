from __future__ import annotations

import json
import uuid

import pydantic
import pytest

from pulse_chat.api.v1.routers import ws as ws_router
from pulse_chat.app import _on_pubsub_event
from pulse_chat.infrastructure.bus.serializer import deserialize_event, serialize_event
from pulse_chat.infrastructure.ws.manager import ConnectionManager
from pulse_chat.infrastructure.ws.protocol import TypingFrame, VisibilityFrame


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.sent: list[dict] = []
        self.accepted = False
        self.broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, raw: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))


@pytest.fixture
def manager(monkeypatch):
    fresh = ConnectionManager()
    monkeypatch.setattr(ws_router, "manager", fresh)
    return fresh


@pytest.mark.asyncio
async def test_disconnect_reports_last_socket(manager):
    tab1, tab2 = FakeWebSocket(), FakeWebSocket()
    await manager.connect(tab1, "user_alice")
    await manager.connect(tab2, "user_alice")

    assert manager.disconnect(tab1, "user_alice") is False
    assert manager.is_connected("user_alice") is True
    assert manager.disconnect(tab2, "user_alice") is True
    assert manager.is_connected("user_alice") is False


@pytest.mark.asyncio
async def test_broadcast_reaches_subscribed_sockets_only(manager):
    conv_id = uuid.uuid4()
    alice, bob = FakeWebSocket(), FakeWebSocket()
    await manager.connect(alice, "user_alice")
    await manager.connect(bob, "user_bob")
    manager.subscribe(alice, conv_id)

    await manager.broadcast_to_conversation(conv_id, "chat.typing", {"user_id": "user_bob"})

    assert alice.sent == [{"type": "chat.typing", "data": {"user_id": "user_bob"}}]
    assert bob.sent == []


@pytest.mark.asyncio
async def test_unsubscribe_in_one_tab_keeps_other_tab(manager):
    conv_id = uuid.uuid4()
    tab1, tab2 = FakeWebSocket(), FakeWebSocket()
    await manager.connect(tab1, "user_alice")
    await manager.connect(tab2, "user_alice")
    manager.subscribe(tab1, conv_id)
    manager.subscribe(tab2, conv_id)

    manager.unsubscribe(tab1, conv_id)
    await manager.broadcast_to_conversation(conv_id, "chat.typing", {})

    assert tab1.sent == []
    assert len(tab2.sent) == 1


@pytest.mark.asyncio
async def test_broken_socket_dropped_on_send(manager):
    await manager.connect(FakeWebSocket(broken=True), "user_alice")

    await manager.send_to_user("user_alice", "user.updated", {})

    assert manager.is_connected("user_alice") is False


@pytest.mark.asyncio
async def test_new_message_pushed_to_unsubscribed_participants(manager):
    conv_id = uuid.uuid4()
    bob_tab1, bob_tab2, carol = FakeWebSocket(), FakeWebSocket(), FakeWebSocket()
    await manager.connect(bob_tab1, "user_bob")
    await manager.connect(bob_tab2, "user_bob")
    await manager.connect(carol, "user_carol")
    data = {
        "message_id": str(uuid.uuid4()),
        "conversation_id": str(conv_id),
        "sender_id": "user_alice",
        "participants": ["user_alice", "user_bob"],
    }

    await _on_pubsub_event("chat.message_created", data)

    assert bob_tab1.sent == [{"type": "chat.message_created", "data": data}]
    assert bob_tab2.sent == [{"type": "chat.message_created", "data": data}]
    assert carol.sent == []


@pytest.mark.asyncio
async def test_typing_event_goes_to_subscribers(manager):
    conv_id = uuid.uuid4()
    watching, elsewhere = FakeWebSocket(), FakeWebSocket()
    await manager.connect(watching, "user_bob")
    await manager.connect(elsewhere, "user_carol")
    manager.subscribe(watching, conv_id)

    await _on_pubsub_event("chat.typing", {"conversation_id": str(conv_id), "user_id": "user_alice"})

    assert len(watching.sent) == 1
    assert elsewhere.sent == []


def test_visibility_frame_requires_real_bool():
    assert VisibilityFrame.model_validate({"visible": False}).visible is False
    with pytest.raises(pydantic.ValidationError):
        VisibilityFrame.model_validate({"visible": "false"})
    with pytest.raises(pydantic.ValidationError):
        VisibilityFrame.model_validate({})


def test_typing_frame_defaults_to_typing():
    conv_id = uuid.uuid4()

    frame = TypingFrame.model_validate({"conversation_id": str(conv_id)})

    assert frame.conversation_id == conv_id
    assert frame.is_typing is True
    with pytest.raises(pydantic.ValidationError):
        TypingFrame.model_validate({"conversation_id": "not-a-uuid"})


def test_event_envelope():
    conv_id = uuid.uuid4()
    raw = serialize_event("chat.read", {"conversation_id": conv_id})

    event, data = deserialize_event(raw)

    assert event == "chat.read"
    assert data == {"conversation_id": str(conv_id)}
