"""SQLAlchemy Unit of Work: one AsyncSession per request or WS command."""
from __future__ import annotations

from types import TracebackType
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from dm_service.infrastructure.db.errors import storage_errors
from dm_service.infrastructure.db.repositories.conversation import (
    ConversationReaderRepo,
    ConversationWriterRepo,
)
from dm_service.infrastructure.db.repositories.message import (
    MessageReaderRepo,
    MessageWriterRepo,
)
from dm_service.infrastructure.db.repositories.user import UserReaderRepo
from dm_service.infrastructure.db.session import AsyncSessionLocal


class SqlAlchemyUoW:
    """Opens a session on enter, rolls back uncommitted work and closes it on exit.

    Commits are explicit: the send flow commits the message row and the
    conversation append separately.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
    ) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("SqlAlchemyUoW used outside of 'async with'")
        return self._session

    async def __aenter__(self) -> Self:
        self._session = self._session_factory()
        self.conversations = ConversationReaderRepo(self._session)
        self.conversations_w = ConversationWriterRepo(self._session)
        self.messages = MessageReaderRepo(self._session)
        self.messages_w = MessageWriterRepo(self._session)
        self.users = UserReaderRepo(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        session, self._session = self.session, None
        try:
            if exc_type is not None:
                await session.rollback()
        finally:
            await session.close()

    @storage_errors
    async def commit(self) -> None:
        await self.session.commit()

    @storage_errors
    async def rollback(self) -> None:
        await self.session.rollback()
