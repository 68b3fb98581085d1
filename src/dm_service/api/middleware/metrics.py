"""Per-request access log with latency and correlation id."""
from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from dm_service.api.middleware.correlation_id import correlation_id_ctx

logger = logging.getLogger("dm_service.access")

RESPONSE_TIME_HEADER = "X-Response-Time"


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        took_ms = (time.perf_counter() - started) * 1000

        response.headers[RESPONSE_TIME_HEADER] = f"{took_ms:.1f}ms"
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "%s %s -> %d in %.1fms rid=%s",
            request.method,
            request.url.path,
            response.status_code,
            took_ms,
            correlation_id_ctx.get(),
        )
        return response
