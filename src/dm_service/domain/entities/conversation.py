from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


def pair_key(user_a: int, user_b: int) -> str:
    """Canonical key for an unordered pair of user ids."""
    low, high = sorted((user_a, user_b))
    return f"{low}:{high}"


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    participants: tuple[int, int]
    message_ids: tuple[UUID, ...]
    created_at: datetime
    updated_at: datetime

    @property
    def pair_key(self) -> str:
        return pair_key(*self.participants)

    @property
    def last_message_id(self) -> UUID | None:
        return self.message_ids[-1] if self.message_ids else None

    def other_participant(self, user_id: int) -> int | None:
        others = [p for p in self.participants if p != user_id]
        return others[0] if len(others) == 1 else None
