from __future__ import annotations

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import NotFoundError, ValidationError
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.user import User

SEARCH_LIMIT = 20


async def get_profile(principal: Principal, uow: UnitOfWork) -> User:
    user = await uow.users.get_by_id(principal.user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def search_users(
    principal: Principal,
    query: str,
    uow: UnitOfWork,
) -> list[User]:
    """Case-insensitive username/email lookup, excluding the caller."""
    query = query.strip()
    if not query:
        raise ValidationError("Search query must not be empty")
    return await uow.users.search(
        query, exclude_id=principal.user_id, limit=SEARCH_LIMIT,
    )
