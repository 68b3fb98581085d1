from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from dm_service.api.v1.schemas.message import MessageResponse
from dm_service.api.v1.schemas.user import UserPublicResponse


class ConversationResponse(BaseModel):
    id: UUID
    other_participant: UserPublicResponse
    last_message: MessageResponse | None
    unread_count: int
    updated_at: datetime

    model_config = {"from_attributes": True}
