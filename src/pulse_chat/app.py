from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from uuid import UUID

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pulse_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from pulse_chat.api.middleware.metrics import RequestTimingMiddleware
from pulse_chat.api.v1.routers import (
    conversations,
    health,
    messages,
    typing_indicators,
    users,
    ws,
)
from pulse_chat.application.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from pulse_chat.config import settings
from pulse_chat.infrastructure.bus.redis_pubsub import RedisPubSubSubscriber
from pulse_chat.infrastructure.db.session import dispose_engine

logger = logging.getLogger(__name__)


async def _on_pubsub_event(event_type: str, data: dict[str, Any]) -> None:
    """Dispatch a change event to the local WS connections that care about it.

    Events carrying a participant list (new conversations, messages, read
    receipts) go to every socket of every participant, so conversation lists
    and unread badges refresh without a subscription. Typing goes only to
    subscribed sockets, user events to everyone.
    """
    from pulse_chat.api.v1.routers.ws import get_manager

    manager = get_manager()

    participants = data.get("participants")
    if participants:
        for user_id in participants:
            await manager.send_to_user(user_id, event_type, data)
        return

    conversation_id_raw = data.get("conversation_id")
    if conversation_id_raw:
        try:
            conversation_id = UUID(conversation_id_raw)
        except ValueError:
            return
        await manager.broadcast_to_conversation(conversation_id, event_type, data)
        return

    if event_type.startswith("user."):
        await manager.broadcast_all(event_type, data)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        _on_pubsub_event,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")
    await dispose_engine()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pulse Chat",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(typing_indicators.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ConflictError)
    async def _conflict(_req: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
