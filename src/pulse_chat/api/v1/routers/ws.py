from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable

import pydantic
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from pulse_chat.api.deps import get_verifier
from pulse_chat.application.dto.principal import Principal
from pulse_chat.application.exceptions import AppError
from pulse_chat.config import settings
from pulse_chat.infrastructure.db.session import AsyncSessionLocal
from pulse_chat.infrastructure.db.uow import SqlAlchemyUoW
from pulse_chat.infrastructure.ws.manager import ConnectionManager
from pulse_chat.infrastructure.ws.protocol import (
    ConversationFrame,
    TypingFrame,
    VisibilityFrame,
    WsInbound,
    encode_frame,
)
from pulse_chat.services import (
    conversation_service,
    presence_service,
    read_receipt_service,
    typing_service,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


async def _send(ws: WebSocket, event_type: str, data: dict[str, Any]) -> None:
    await ws.send_text(encode_frame(event_type, data))


async def _in_uow(action: Callable[[SqlAlchemyUoW], Awaitable[Any]]) -> Any:
    async with AsyncSessionLocal() as session:
        async with SqlAlchemyUoW(session) as uow:
            return await action(uow)


async def _set_presence(user_id: str, is_online: bool) -> None:
    try:
        await _in_uow(
            lambda uow: presence_service.set_online_status(user_id, is_online, uow)
        )
    except Exception:
        logger.exception("Presence update failed for %s", user_id)


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    user_id = principal.external_id
    first_socket = not manager.is_connected(user_id)
    await manager.connect(websocket, user_id)
    if first_socket:
        await _set_presence(user_id, True)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{user_id}",
    )
    try:
        await _read_loop(websocket, principal)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", user_id)
    finally:
        heartbeat_task.cancel()
        if manager.disconnect(websocket, user_id):
            await _set_presence(user_id, False)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await _send(ws, "pong", {})
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("WS heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, principal: Principal) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await _send(ws, "error", {"code": "invalid_payload"})
            continue

        handler = _HANDLERS.get(msg.type)
        if handler is None:
            await _send(ws, "error", {"code": "unknown_type", "type": msg.type})
            continue

        try:
            await handler(ws, principal, msg.data)
        except pydantic.ValidationError as exc:
            await _send(ws, "error", {"code": "invalid_data", "type": msg.type, "detail": str(exc)})
        except AppError as exc:
            await _send(ws, "error", {"code": "rejected", "type": msg.type, "detail": exc.detail})


async def _handle_ping(ws: WebSocket, principal: Principal, data: dict) -> None:
    await _send(ws, "pong", {})


async def _handle_subscribe(ws: WebSocket, principal: Principal, data: dict) -> None:
    conversation_id = ConversationFrame.model_validate(data).conversation_id
    await _in_uow(
        lambda uow: conversation_service.get_conversation(
            conversation_id, principal.external_id, uow,
        )
    )
    manager.subscribe(ws, conversation_id)


async def _handle_unsubscribe(ws: WebSocket, principal: Principal, data: dict) -> None:
    frame = ConversationFrame.model_validate(data)
    manager.unsubscribe(ws, frame.conversation_id)


async def _handle_heartbeat(ws: WebSocket, principal: Principal, data: dict) -> None:
    await _set_presence(principal.external_id, True)


async def _handle_visibility(ws: WebSocket, principal: Principal, data: dict) -> None:
    frame = VisibilityFrame.model_validate(data)
    await _set_presence(principal.external_id, frame.visible)


async def _handle_typing(ws: WebSocket, principal: Principal, data: dict) -> None:
    frame = TypingFrame.model_validate(data)
    await _in_uow(
        lambda uow: typing_service.set_typing(
            frame.conversation_id, principal.external_id, frame.is_typing, uow,
        )
    )


async def _handle_mark_read(ws: WebSocket, principal: Principal, data: dict) -> None:
    frame = ConversationFrame.model_validate(data)
    await _in_uow(
        lambda uow: read_receipt_service.mark_as_read(
            frame.conversation_id, principal.external_id, uow,
        )
    )


_HANDLERS: dict[str, Callable[[WebSocket, Principal, dict], Awaitable[None]]] = {
    "ping": _handle_ping,
    "subscribe": _handle_subscribe,
    "unsubscribe": _handle_unsubscribe,
    "heartbeat": _handle_heartbeat,
    "visibility": _handle_visibility,
    "typing": _handle_typing,
    "mark_read": _handle_mark_read,
}
