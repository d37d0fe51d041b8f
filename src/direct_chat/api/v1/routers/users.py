from __future__ import annotations

from fastapi import APIRouter, Query

from direct_chat.api.deps import CurrentPrincipal, UoWDep
from direct_chat.api.v1.schemas.user import UserResponse
from direct_chat.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def list_users(principal: CurrentPrincipal, uow: UoWDep) -> list[UserResponse]:
    users = await user_service.list_sidebar_users(principal, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]


@router.get("/search", response_model=list[UserResponse])
async def search_users(
    principal: CurrentPrincipal,
    uow: UoWDep,
    query: str = Query("", max_length=100),
    limit: int = Query(20, ge=1, le=100),
) -> list[UserResponse]:
    users = await user_service.search_users(principal, query, limit, uow)
    return [UserResponse.model_validate(u, from_attributes=True) for u in users]
