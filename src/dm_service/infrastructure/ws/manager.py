"""In-process WebSocket connection manager."""
from __future__ import annotations

import logging
from typing import Any, Iterable

from fastapi import WebSocket

from dm_service.application.dto.principal import principal_key
from dm_service.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live WebSocket connections per principal (one user may hold several)."""

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = {}

    async def connect(self, ws: WebSocket, pkey: str) -> None:
        await ws.accept()
        self._connections.setdefault(pkey, set()).add(ws)
        logger.debug("WS connected: %s (total=%d)", pkey, len(self._connections))

    def disconnect(self, ws: WebSocket, pkey: str) -> None:
        conns = self._connections.get(pkey)
        if conns:
            conns.discard(ws)
            if not conns:
                del self._connections[pkey]
        logger.debug("WS disconnected: %s", pkey)

    async def send_to_users(
        self,
        user_ids: Iterable[int],
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        """Send a WS message to every live connection of the given users."""
        for pkey in {principal_key(uid) for uid in user_ids}:
            await self.send_to_principal(pkey, event_type, data)

    async def send_to_principal(
        self,
        pkey: str,
        event_type: str,
        data: dict[str, Any],
    ) -> None:
        """Send a WS message to a specific principal."""
        payload = WsOutbound(type=event_type, data=data)
        raw = payload.model_dump_json()
        dead: list[WebSocket] = []
        for ws in list(self._connections.get(pkey, set())):
            try:
                await ws.send_text(raw)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws, pkey)
