from __future__ import annotations

from datetime import datetime
from typing import Iterable
from uuid import UUID

from sqlalchemy import ColumnElement, Select, any_, func, literal, select, update
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.message import Message
from dm_service.infrastructure.db.errors import storage_errors
from dm_service.infrastructure.db.mappers import message as mapper
from dm_service.infrastructure.db.models.message import MessageModel
from dm_service.infrastructure.db.repositories._cursor import decode_cursor


def _id_among(ids: list[UUID]) -> ColumnElement[bool]:
    """`id = ANY(:ids)`: all ids travel in one uuid[] bind parameter."""
    return MessageModel.id == any_(literal(ids, ARRAY(PG_UUID(as_uuid=True))))


def history_query(
    message_ids: list[UUID],
    *,
    cursor: str | None = None,
    limit: int = 50,
) -> Select[tuple[MessageModel]]:
    stmt = (
        select(MessageModel)
        .where(_id_among(message_ids))
        .order_by(MessageModel.created_at.desc(), MessageModel.id.desc())
        .limit(limit)
    )
    if cursor:
        ts, mid = decode_cursor(cursor)
        stmt = stmt.where(
            (MessageModel.created_at < ts)
            | ((MessageModel.created_at == ts) & (MessageModel.id < mid))
        )
    return stmt


class MessageReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @storage_errors
    async def get_by_id(self, message_id: UUID) -> Message | None:
        result = await self._session.get(MessageModel, message_id)
        return mapper.model_to_entity(result) if result else None

    @storage_errors
    async def get_many(self, message_ids: Iterable[UUID]) -> list[Message]:
        ids = list(message_ids)
        if not ids:
            return []
        stmt = select(MessageModel).where(_id_among(ids))
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    @storage_errors
    async def list_by_ids(
        self,
        message_ids: Iterable[UUID],
        *,
        cursor: str | None = None,
        limit: int = 50,
    ) -> list[Message]:
        ids = list(message_ids)
        if not ids:
            return []
        result = await self._session.execute(history_query(ids, cursor=cursor, limit=limit))
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    @storage_errors
    async def count_unread_by_sender(self, receiver_id: int) -> dict[int, int]:
        stmt = (
            select(MessageModel.sender_id, func.count())
            .where(
                MessageModel.receiver_id == receiver_id,
                MessageModel.is_read.is_(False),
            )
            .group_by(MessageModel.sender_id)
        )
        result = await self._session.execute(stmt)
        return {sender_id: count for sender_id, count in result.all()}


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @storage_errors
    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    @storage_errors
    async def mark_read(self, message_id: UUID, ts: datetime) -> Message | None:
        stmt = (
            update(MessageModel)
            .where(MessageModel.id == message_id)
            .values(is_read=True, updated_at=ts)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            return None
        model = await self._session.get(MessageModel, message_id, populate_existing=True)
        return mapper.model_to_entity(model) if model else None
