"""Seed development data: creates tables, two users and a short conversation."""
from __future__ import annotations

import asyncio
import logging

import redis.asyncio as aioredis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dm_service.application.dto.message import SendMessageDTO
from dm_service.application.dto.principal import Principal
from dm_service.config import settings
from dm_service.infrastructure.bus.redis_pubsub import RedisNotifier
from dm_service.infrastructure.db.models.user import UserModel
from dm_service.infrastructure.db.session import create_schema, dispose_engine
from dm_service.infrastructure.db.uow import SqlAlchemyUoW
from dm_service.logging_config import setup_logging
from dm_service.services import message_service

logger = logging.getLogger(__name__)

USERS = [
    {"username": "alice", "fullname": "Alice Example", "email": "alice@example.com"},
    {"username": "bob", "fullname": "Bob Example", "email": "bob@example.com"},
]


async def _ensure_user(session: AsyncSession, data: dict[str, str]) -> int:
    existing = await session.scalar(
        select(UserModel).where(UserModel.email == data["email"])
    )
    if existing is not None:
        return existing.id
    user = UserModel(avatar=f"https://robohash.org/{data['username']}", **data)
    session.add(user)
    await session.flush()
    return user.id


async def seed() -> None:
    await create_schema()
    redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    notifier = RedisNotifier(redis, settings.NOTIFY_CHANNEL)
    try:
        async with SqlAlchemyUoW() as uow:
            alice_id = await _ensure_user(uow.session, USERS[0])
            bob_id = await _ensure_user(uow.session, USERS[1])
            await uow.commit()

            alice = Principal(user_id=alice_id, email=USERS[0]["email"])
            bob = Principal(user_id=bob_id, email=USERS[1]["email"])
            script = [
                (alice, bob_id, "hi"),
                (bob, alice_id, "hello"),
                (alice, bob_id, "how is it going?"),
            ]
            for sender, target, body in script:
                await message_service.send_message(
                    sender, SendMessageDTO(target_user_id=target, body=body), uow, notifier,
                )
        logger.info("Seeded users %d/%d with %d messages", alice_id, bob_id, len(script))
    finally:
        await redis.aclose()
        await dispose_engine()


def main() -> None:
    setup_logging(settings.LOG_LEVEL)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
