from __future__ import annotations

from typing import Iterable

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.domain.entities.user import User
from dm_service.infrastructure.db.errors import storage_errors
from dm_service.infrastructure.db.mappers import user as mapper
from dm_service.infrastructure.db.models.user import UserModel


class UserReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @storage_errors
    async def get_by_id(self, user_id: int) -> User | None:
        result = await self._session.get(UserModel, user_id)
        return mapper.model_to_entity(result) if result else None

    @storage_errors
    async def get_many(self, user_ids: Iterable[int]) -> list[User]:
        ids = list(user_ids)
        if not ids:
            return []
        stmt = select(UserModel).where(UserModel.id.in_(ids))
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]

    @storage_errors
    async def search(
        self,
        query: str,
        *,
        exclude_id: int | None = None,
        limit: int = 20,
    ) -> list[User]:
        stmt = (
            select(UserModel)
            .where(
                or_(
                    UserModel.username.icontains(query, autoescape=True),
                    UserModel.email.icontains(query, autoescape=True),
                )
            )
            .order_by(UserModel.username.asc())
            .limit(limit)
        )
        if exclude_id is not None:
            stmt = stmt.where(UserModel.id != exclude_id)
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]
