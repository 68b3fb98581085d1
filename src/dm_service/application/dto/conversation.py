from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from dm_service.domain.entities.message import Message
from dm_service.domain.entities.user import User


@dataclass(frozen=True, slots=True)
class ConversationView:
    """Read-side projection of a conversation as seen by one participant."""

    id: UUID
    other_participant: User
    last_message: Message | None
    unread_count: int
    updated_at: datetime
