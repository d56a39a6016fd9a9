from __future__ import annotations

from datetime import timedelta
from uuid import UUID

from fastapi import APIRouter, status

from pulse_chat.api.deps import CurrentPrincipal, UoWDep
from pulse_chat.api.v1.schemas.typing_marker import TypingRequest, TypingUserResponse
from pulse_chat.config import settings
from pulse_chat.services import typing_service

router = APIRouter(prefix="/api/v1/chat/conversations", tags=["typing"])


@router.put("/{conversation_id}/typing", status_code=status.HTTP_204_NO_CONTENT)
async def set_typing(
    conversation_id: UUID,
    body: TypingRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> None:
    await typing_service.set_typing(
        conversation_id, principal.external_id, body.is_typing, uow,
    )


@router.get("/{conversation_id}/typing", response_model=list[TypingUserResponse])
async def typing_users(
    conversation_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[TypingUserResponse]:
    markers = await typing_service.list_typing_users(
        conversation_id,
        principal.external_id,
        uow,
        window=timedelta(milliseconds=settings.TYPING_FRESHNESS_MS),
    )
    return [TypingUserResponse.model_validate(m, from_attributes=True) for m in markers]
