from __future__ import annotations

from typing import Iterable, Protocol

from dm_service.domain.entities.user import User


class UserReader(Protocol):
    async def get_by_id(self, user_id: int) -> User | None: ...

    async def get_many(self, user_ids: Iterable[int]) -> list[User]: ...

    async def search(
        self, query: str, *, exclude_id: int | None = None, limit: int = 20
    ) -> list[User]: ...
