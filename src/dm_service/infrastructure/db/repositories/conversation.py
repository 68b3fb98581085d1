from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, literal, select, update
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.application.exceptions import StorageError
from dm_service.domain.entities.conversation import Conversation, pair_key
from dm_service.infrastructure.db.errors import storage_errors
from dm_service.infrastructure.db.mappers import conversation as mapper
from dm_service.infrastructure.db.models.conversation import ConversationModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @storage_errors
    async def get_between(self, user_a: int, user_b: int) -> Conversation | None:
        stmt = select(ConversationModel).where(
            ConversationModel.pair_key == pair_key(user_a, user_b)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    @storage_errors
    async def list_for_user(self, user_id: int) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.participants.contains([user_id]))
            .order_by(ConversationModel.updated_at.desc(), ConversationModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @storage_errors
    async def create_if_not_exists(
        self, conversation: Conversation
    ) -> tuple[Conversation, bool]:
        """Insert idempotently on the pair key. Returns (conversation, created_flag)."""
        stmt = (
            pg_insert(ConversationModel)
            .values(**mapper.entity_to_values(conversation))
            .on_conflict_do_nothing(constraint="uq_conversation_pair")
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # lost the race; read the winner
        stmt = select(ConversationModel).where(
            ConversationModel.pair_key == conversation.pair_key
        )
        existing = (await self._session.execute(stmt)).scalar_one()
        return mapper.model_to_entity(existing), False

    @storage_errors
    async def append_message(
        self,
        conversation_id: UUID,
        message_id: UUID,
        ts: datetime,
    ) -> None:
        stmt = (
            update(ConversationModel)
            .where(ConversationModel.id == conversation_id)
            .values(
                message_ids=func.array_append(
                    ConversationModel.message_ids,
                    literal(message_id, PG_UUID(as_uuid=True)),
                ),
                updated_at=ts,
            )
            # expire the array on any loaded instance so later reads see the append
            .execution_options(synchronize_session="fetch")
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise StorageError(f"Conversation {conversation_id} missing on append")
