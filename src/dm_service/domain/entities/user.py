from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class User:
    """Public profile of a user owned by the identity service."""

    id: int
    username: str
    fullname: str
    email: str
    avatar: str | None
