from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Message:
    id: UUID
    sender_id: int
    receiver_id: int
    body: str
    is_read: bool
    created_at: datetime
    updated_at: datetime
