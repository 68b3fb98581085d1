from __future__ import annotations

from datetime import datetime
from typing import Iterable, Protocol
from uuid import UUID

from dm_service.domain.entities.message import Message


class MessageReader(Protocol):
    async def get_by_id(self, message_id: UUID) -> Message | None: ...

    async def get_many(self, message_ids: Iterable[UUID]) -> list[Message]: ...

    async def list_by_ids(
        self,
        message_ids: Iterable[UUID],
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        """Resolve message references newest-first, older than cursor if given."""
        ...

    async def count_unread_by_sender(self, receiver_id: int) -> dict[int, int]: ...


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message: ...

    async def mark_read(self, message_id: UUID, ts: datetime) -> Message | None: ...
