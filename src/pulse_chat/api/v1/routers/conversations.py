from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Response, status

from pulse_chat.api.deps import CurrentPrincipal, UoWDep
from pulse_chat.api.v1.schemas.conversation import (
    ConversationResponse,
    DirectConversationRequest,
    GroupConversationRequest,
    LastMessagesRequest,
    ReadReceiptResponse,
    UnreadCountResponse,
)
from pulse_chat.api.v1.schemas.message import MessageResponse
from pulse_chat.services import conversation_service, message_service, read_receipt_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["conversations"])


@router.post("/direct", response_model=ConversationResponse)
async def get_or_create_direct(
    body: DirectConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    response: Response,
) -> ConversationResponse:
    conv, created = await conversation_service.get_or_create_direct_conversation(
        principal.external_id, body.other_user_id, uow,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.post("/groups", response_model=ConversationResponse, status_code=201)
async def create_group(
    body: GroupConversationRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.create_group_conversation(
        principal.external_id, body.member_ids, body.group_name, uow,
    )
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[ConversationResponse]:
    convs = await conversation_service.list_user_conversations(principal.external_id, uow)
    return [ConversationResponse.model_validate(c, from_attributes=True) for c in convs]


@router.get("/unread", response_model=dict[UUID, int])
async def all_unread_counts(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> dict[UUID, int]:
    return await message_service.get_all_unread_counts(principal.external_id, uow)


@router.post("/last-messages", response_model=dict[UUID, MessageResponse])
async def last_messages(
    body: LastMessagesRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> dict[UUID, MessageResponse]:
    latest = await message_service.get_last_messages(
        body.conversation_ids, principal.external_id, uow,
    )
    return {cid: MessageResponse.from_entity(m) for cid, m in latest.items()}


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ConversationResponse:
    conv = await conversation_service.get_conversation(
        conversation_id, principal.external_id, uow,
    )
    return ConversationResponse.model_validate(conv, from_attributes=True)


@router.get("/{conversation_id}/unread", response_model=UnreadCountResponse)
async def unread_count(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> UnreadCountResponse:
    count = await message_service.get_unread_count(
        conversation_id, principal.external_id, uow,
    )
    return UnreadCountResponse(conversation_id=conversation_id, count=count)


@router.post("/{conversation_id}/read", response_model=ReadReceiptResponse)
async def mark_as_read(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ReadReceiptResponse:
    receipt = await read_receipt_service.mark_as_read(
        conversation_id, principal.external_id, uow,
    )
    return ReadReceiptResponse.model_validate(receipt, from_attributes=True)
