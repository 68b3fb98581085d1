from __future__ import annotations

from typing import Protocol

from dm_service.application.repositories.conversation import (
    ConversationReader,
    ConversationWriter,
)
from dm_service.application.repositories.message import MessageReader, MessageWriter
from dm_service.application.repositories.user import UserReader


class UnitOfWork(Protocol):
    conversations: ConversationReader
    conversations_w: ConversationWriter
    messages: MessageReader
    messages_w: MessageWriter
    users: UserReader

    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
