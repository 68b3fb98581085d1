from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: int
    email: str = ""

    @property
    def principal_key(self) -> str:
        """Unique key for WS connection registry."""
        return principal_key(self.user_id)


def principal_key(user_id: int) -> str:
    return f"user:{user_id}"
