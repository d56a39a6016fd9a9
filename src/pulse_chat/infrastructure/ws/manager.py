"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import WebSocket

from pulse_chat.infrastructure.ws.protocol import encode_frame

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks WebSocket connections per user and conversation subscriptions.

    A user may hold several sockets (tabs, devices). Subscriptions belong to
    the socket that asked for them, so one tab unsubscribing leaves the
    others untouched.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}
        self._owners: dict[WebSocket, str] = {}
        self._subscriptions: dict[UUID, set[WebSocket]] = {}

    async def connect(self, ws: WebSocket, user_id: str) -> None:
        await ws.accept()
        self._connections.setdefault(user_id, set()).add(ws)
        self._owners[ws] = user_id
        logger.debug("WS connected: %s (users=%d)", user_id, len(self._connections))

    def disconnect(self, ws: WebSocket, user_id: str) -> bool:
        """Drop one socket. Return True when it was the user's last one."""
        self._owners.pop(ws, None)
        for conversation_id in list(self._subscriptions):
            self._discard_subscription(ws, conversation_id)

        conns = self._connections.get(user_id)
        if conns:
            conns.discard(ws)
            if conns:
                return False
            del self._connections[user_id]
        logger.debug("WS disconnected: %s", user_id)
        return True

    def is_connected(self, user_id: str) -> bool:
        return bool(self._connections.get(user_id))

    def subscribe(self, ws: WebSocket, conversation_id: UUID) -> None:
        self._subscriptions.setdefault(conversation_id, set()).add(ws)

    def unsubscribe(self, ws: WebSocket, conversation_id: UUID) -> None:
        self._discard_subscription(ws, conversation_id)

    def _discard_subscription(self, ws: WebSocket, conversation_id: UUID) -> None:
        subs = self._subscriptions.get(conversation_id)
        if subs:
            subs.discard(ws)
            if not subs:
                del self._subscriptions[conversation_id]

    async def broadcast_to_conversation(
        self,
        conversation_id: UUID,
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        """Send an event to every socket subscribed to a conversation."""
        raw = encode_frame(event_type, data)
        for ws in list(self._subscriptions.get(conversation_id, set())):
            await self._send(ws, raw)

    async def broadcast_all(self, event_type: str, data: dict[str, Any]) -> None:
        for user_id in list(self._connections):
            await self.send_to_user(user_id, event_type, data)

    async def send_to_user(
        self,
        user_id: str,
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        raw = encode_frame(event_type, data)
        for ws in list(self._connections.get(user_id, set())):
            await self._send(ws, raw)

    async def _send(self, ws: WebSocket, raw: str) -> None:
        try:
            await ws.send_text(raw)
        except Exception:
            user_id = self._owners.get(ws)
            logger.debug("Dropping dead WS for %s", user_id)
            if user_id is not None:
                self.disconnect(ws, user_id)
