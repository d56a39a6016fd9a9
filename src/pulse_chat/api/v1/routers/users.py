from __future__ import annotations

from fastapi import APIRouter, status

from pulse_chat.api.deps import CurrentPrincipal, UoWDep
from pulse_chat.api.v1.schemas.user import (
    LookupUsersRequest,
    PresenceRequest,
    UpsertUserRequest,
    UserResponse,
)
from pulse_chat.services import presence_service

router = APIRouter(prefix="/api/v1/chat/users", tags=["users"])


@router.put("/me", response_model=UserResponse)
async def upsert_me(
    body: UpsertUserRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> UserResponse:
    user = await presence_service.upsert_user(
        principal.external_id, body.name, body.email, body.image_url, uow,
    )
    return UserResponse.model_validate(user, from_attributes=True)


@router.put("/me/presence", status_code=status.HTTP_204_NO_CONTENT)
async def set_presence(
    body: PresenceRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> None:
    await presence_service.set_online_status(principal.external_id, body.is_online, uow)


@router.get("/me", response_model=UserResponse)
async def get_me(principal: CurrentPrincipal, uow: UoWDep) -> UserResponse:
    user = await presence_service.get_user(principal.external_id, uow)
    return UserResponse.model_validate(user, from_attributes=True)


@router.get("", response_model=list[UserResponse])
async def list_users(principal: CurrentPrincipal, uow: UoWDep) -> list[UserResponse]:
    users = await presence_service.list_users_except(principal.external_id, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]


@router.post("/lookup", response_model=list[UserResponse])
async def lookup_users(
    body: LookupUsersRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> list[UserResponse]:
    users = await presence_service.get_users(body.external_ids, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]


@router.get("/{external_id}", response_model=UserResponse)
async def get_user(
    external_id: str,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> UserResponse:
    user = await presence_service.get_user(external_id, uow)
    return UserResponse.model_validate(user, from_attributes=True)
