from __future__ import annotations

from fastapi import APIRouter, Query

from dm_service.api.deps import CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.common import ApiResponse
from dm_service.api.v1.schemas.user import UserPublicResponse
from dm_service.services import user_service

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("/me", response_model=ApiResponse[UserPublicResponse])
async def profile(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ApiResponse[UserPublicResponse]:
    user = await user_service.get_profile(principal, uow)
    return ApiResponse[UserPublicResponse](
        data=UserPublicResponse.model_validate(user, from_attributes=True),
    )


@router.get("/search", response_model=ApiResponse[list[UserPublicResponse]])
async def search(
    principal: CurrentPrincipal,
    uow: UoWDep,
    q: str = Query(..., max_length=100),
) -> ApiResponse[list[UserPublicResponse]]:
    users = await user_service.search_users(principal, q, uow)
    return ApiResponse[list[UserPublicResponse]](
        data=[UserPublicResponse.model_validate(u, from_attributes=True) for u in users],
    )
