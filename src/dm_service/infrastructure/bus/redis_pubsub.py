"""Redis Pub/Sub transport: the Notifier publish side and the in-process subscriber."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from dm_service.domain.entities.message import Message
from dm_service.domain.value_objects.enums import BusEvent
from dm_service.infrastructure.bus.serializer import (
    deserialize_event,
    message_to_payload,
    serialize_event,
)

logger = logging.getLogger(__name__)

RESUBSCRIBE_INITIAL_DELAY_SECONDS = 0.5
RESUBSCRIBE_MAX_DELAY_SECONDS = 30.0


class RedisNotifier:
    """Implements application.ports.bus.Notifier."""

    def __init__(self, redis: aioredis.Redis, channel: str) -> None:
        self._redis = redis
        self._channel = channel

    async def publish(self, message: Message) -> None:
        raw = serialize_event(BusEvent.NEW_MESSAGE, message_to_payload(message))
        receivers = await self._redis.publish(self._channel, raw)
        logger.debug(
            "Published message %s on %s (%d receivers)", message.id, self._channel, receivers,
        )


OnEventCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Background task feeding channel events to a callback.

    Pub/Sub is at-most-once: events published while the connection is down
    are lost. Any failure of the subscription resubscribes with exponential
    backoff; only cancellation stops the loop.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnEventCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None
        self._delay = RESUBSCRIBE_INITIAL_DELAY_SECONDS

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._run(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Redis Pub/Sub subscriber stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except RedisError:
                logger.warning(
                    "Pub/Sub subscription on %s failed, resubscribing in %.1fs",
                    self._channel, self._delay, exc_info=True,
                )
            except Exception:
                logger.exception(
                    "Unexpected Pub/Sub failure on %s, resubscribing in %.1fs",
                    self._channel, self._delay,
                )
            await asyncio.sleep(self._delay)
            self._delay = min(self._delay * 2, RESUBSCRIBE_MAX_DELAY_SECONDS)

    async def _listen(self) -> None:
        async with self._redis.pubsub() as pubsub:
            await pubsub.subscribe(self._channel)
            self._delay = RESUBSCRIBE_INITIAL_DELAY_SECONDS
            async for item in pubsub.listen():
                if item["type"] == "message":
                    await self._dispatch(item["data"])

    async def _dispatch(self, raw: str | bytes) -> None:
        try:
            event_type, data = deserialize_event(raw)
            await self._callback(event_type, data)
        except Exception:
            logger.exception("Error processing pubsub message")
