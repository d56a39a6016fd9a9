from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter

from pulse_chat.api.deps import CurrentPrincipal, UoWDep
from pulse_chat.api.v1.schemas.message import (
    MessageResponse,
    ReactionRequest,
    SendMessageRequest,
)
from pulse_chat.services import message_service

router = APIRouter(prefix="/api/v1/chat", tags=["messages"])


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=list[MessageResponse],
)
async def list_messages(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[MessageResponse]:
    messages = await message_service.list_messages(
        conversation_id, principal.external_id, uow,
    )
    return [MessageResponse.from_entity(m) for m in messages]


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=201,
)
async def send_message(
    conversation_id: UUID,
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg = await message_service.send_message(
        conversation_id, principal.external_id, body.content, uow,
    )
    return MessageResponse.from_entity(msg)


@router.delete("/messages/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg = await message_service.delete_message(message_id, principal.external_id, uow)
    return MessageResponse.from_entity(msg)


@router.post("/messages/{message_id}/reactions", response_model=MessageResponse)
async def toggle_reaction(
    message_id: UUID,
    body: ReactionRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> MessageResponse:
    msg = await message_service.toggle_message_reaction(
        message_id, principal.external_id, body.emoji, uow,
    )
    return MessageResponse.from_entity(msg)
