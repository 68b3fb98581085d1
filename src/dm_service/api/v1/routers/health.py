from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from dm_service.api.v1.schemas.common import ApiResponse
from dm_service.infrastructure.db.session import AsyncSessionLocal

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/healthz", response_model=ApiResponse[dict[str, str]])
async def healthz() -> ApiResponse[dict[str, str]]:
    return ApiResponse[dict[str, str]](data={"status": "ok"})


@router.get("/readyz")
async def readyz(request: Request) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception:  # noqa: BLE001
        logger.warning("Readiness check failed for postgres", exc_info=True)
        checks["postgres"] = "unavailable"

    try:
        await request.app.state.redis.ping()
        checks["redis"] = "ok"
    except Exception:  # noqa: BLE001
        logger.warning("Readiness check failed for redis", exc_info=True)
        checks["redis"] = "unavailable"

    subscriber = getattr(request.app.state, "pubsub_subscriber", None)
    checks["pubsub"] = "ok" if subscriber is not None and subscriber.running else "stopped"

    ready = all(v == "ok" for v in checks.values())
    status_code = 200 if ready else 503
    body = ApiResponse[dict[str, str]](
        success=ready,
        status_code=status_code,
        message="ready" if ready else "unavailable",
        data=checks,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())
