from __future__ import annotations

from datetime import datetime
from typing import Protocol
from uuid import UUID

from dm_service.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_between(self, user_a: int, user_b: int) -> Conversation | None:
        """Find the conversation for an unordered pair of users."""
        ...

    async def list_for_user(self, user_id: int) -> list[Conversation]:
        """All conversations the user takes part in, most recently active first."""
        ...


class ConversationWriter(Protocol):
    async def create_if_not_exists(
        self, conversation: Conversation
    ) -> tuple[Conversation, bool]:
        """Insert conversation. Return (conversation, created). On pair conflict → return existing."""
        ...

    async def append_message(
        self, conversation_id: UUID, message_id: UUID, ts: datetime
    ) -> None:
        """Atomically push message_id onto the conversation and bump updated_at."""
        ...
