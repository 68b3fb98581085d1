from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status

from dm_service.api.deps import CurrentPrincipal, NotifierDep, UoWDep
from dm_service.api.v1.schemas.common import ApiResponse, PaginatedResponse
from dm_service.api.v1.schemas.message import MessageResponse, SendMessageRequest
from dm_service.application.dto.message import SendMessageDTO
from dm_service.infrastructure.db.repositories._cursor import encode_cursor
from dm_service.services import message_service, read_state_service

router = APIRouter(prefix="/api/v1/messages", tags=["messages"])


@router.post(
    "/send",
    response_model=ApiResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    body: SendMessageRequest,
    principal: CurrentPrincipal,
    uow: UoWDep,
    notifier: NotifierDep,
) -> ApiResponse[MessageResponse]:
    msg = await message_service.send_message(
        principal,
        SendMessageDTO(target_user_id=body.target_user_id, body=body.body),
        uow,
        notifier,
    )
    return ApiResponse[MessageResponse](
        status_code=status.HTTP_201_CREATED,
        message="Message sent",
        data=MessageResponse.model_validate(msg, from_attributes=True),
    )


@router.post("/{message_id}/read", response_model=ApiResponse[MessageResponse])
async def mark_read(
    message_id: UUID,
    principal: CurrentPrincipal,
    uow: UoWDep,
) -> ApiResponse[MessageResponse]:
    msg = await read_state_service.mark_read(principal, message_id, uow)
    return ApiResponse[MessageResponse](
        message="Message marked as read",
        data=MessageResponse.model_validate(msg, from_attributes=True),
    )


@router.get(
    "/list/{peer_id}",
    response_model=ApiResponse[PaginatedResponse[MessageResponse]],
)
async def message_history(
    peer_id: int,
    principal: CurrentPrincipal,
    uow: UoWDep,
    cursor: str | None = Query(None),
    limit: int = Query(50, ge=1, le=message_service.HISTORY_MAX_LIMIT),
) -> ApiResponse[PaginatedResponse[MessageResponse]]:
    messages = await message_service.get_message_history(
        principal, peer_id, uow, limit=limit, cursor=cursor,
    )
    next_cursor = (
        encode_cursor(messages[-1].created_at, messages[-1].id)
        if len(messages) == limit
        else None
    )
    page = PaginatedResponse[MessageResponse](
        items=[MessageResponse.model_validate(m, from_attributes=True) for m in messages],
        next_cursor=next_cursor,
    )
    return ApiResponse[PaginatedResponse[MessageResponse]](data=page)
