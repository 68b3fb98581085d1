from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from dm_service.config import settings


class SendMessageRequest(BaseModel):
    # strict: no float truncation or bool coercion into a user id
    target_user_id: int = Field(strict=True)
    body: str = Field(max_length=settings.MESSAGE_MAX_LENGTH)


class MessageResponse(BaseModel):
    id: UUID
    sender_id: int
    receiver_id: int
    body: str
    is_read: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
