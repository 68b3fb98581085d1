from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from dm_service.api.middleware.correlation_id import CorrelationIdMiddleware
from dm_service.api.middleware.metrics import RequestTimingMiddleware
from dm_service.api.v1.routers import (
    conversations,
    health,
    messages,
    users,
    ws,
)
from dm_service.api.v1.schemas.common import ErrorResponse
from dm_service.application.exceptions import AppError, StorageError
from dm_service.config import settings
from dm_service.domain.value_objects.enums import BusEvent, WsEvent
from dm_service.infrastructure.bus.redis_pubsub import RedisNotifier, RedisPubSubSubscriber
from dm_service.infrastructure.db.session import dispose_engine

logger = logging.getLogger(__name__)


async def _on_pubsub_event(event_type: str, data: dict[str, Any]) -> None:
    """Deliver a Redis Pub/Sub event to the local WS connections of both parties."""
    if event_type != BusEvent.NEW_MESSAGE:
        logger.debug("Ignoring pubsub event %s", event_type)
        return

    try:
        user_ids = (int(data["sender_id"]), int(data["receiver_id"]))
    except (KeyError, TypeError, ValueError):
        logger.warning("Malformed %s event: %r", event_type, data)
        return

    await ws.get_manager().send_to_users(user_ids, WsEvent.MESSAGE_CREATED, data)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=settings.REDIS_CONNECT_TIMEOUT_SECONDS,
    )
    app.state.notifier = RedisNotifier(app.state.redis, settings.NOTIFY_CHANNEL)
    logger.info("Redis connection pool created")

    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.NOTIFY_CHANNEL,
        _on_pubsub_event,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.redis.aclose()
    await dispose_engine()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Direct Messaging Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(users.router)
    app.include_router(ws.router)

    return app


def _error(status_code: int, message: str) -> JSONResponse:
    body = ErrorResponse(status_code=status_code, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StorageError)
    async def _storage(req: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s", req.method, req.url.path, exc_info=exc)
        return _error(exc.status_code, "Internal server error")

    @app.exception_handler(AppError)
    async def _app_error(_req: Request, exc: AppError) -> JSONResponse:
        return _error(exc.status_code, exc.detail)

    @app.exception_handler(StarletteHTTPException)
    async def _http(_req: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def _request_validation(_req: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{loc}: {first.get('msg', 'invalid request')}" if loc else "Invalid request"
        return _error(422, message)

    @app.exception_handler(Exception)
    async def _unhandled(req: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", req.method, req.url.path, exc_info=exc)
        return _error(500, "Internal server error")
