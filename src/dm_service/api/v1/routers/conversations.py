from __future__ import annotations

from fastapi import APIRouter

from dm_service.api.deps import CurrentPrincipal, UoWDep
from dm_service.api.v1.schemas.common import ApiResponse
from dm_service.api.v1.schemas.conversation import ConversationResponse
from dm_service.services import conversation_service

router = APIRouter(prefix="/api/v1/conversations", tags=["conversations"])


@router.get("", response_model=ApiResponse[list[ConversationResponse]])
async def list_conversations(
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ApiResponse[list[ConversationResponse]]:
    views = await conversation_service.list_conversations(principal, uow)
    return ApiResponse[list[ConversationResponse]](
        data=[ConversationResponse.model_validate(v, from_attributes=True) for v in views],
    )
