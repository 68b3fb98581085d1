from __future__ import annotations

from typing import Protocol

from dm_service.domain.entities.message import Message


class Notifier(Protocol):
    """Best-effort fan-out of freshly stored messages."""

    async def publish(self, message: Message) -> None: ...
