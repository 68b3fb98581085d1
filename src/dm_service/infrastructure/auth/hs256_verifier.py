from __future__ import annotations

from typing import Any

import jwt

from dm_service.application.dto.principal import Principal


def claims_to_principal(payload: dict[str, Any]) -> Principal:
    """Map verified token claims onto the caller identity."""
    return Principal(
        user_id=int(payload["sub"]),
        email=payload.get("email", ""),
    )


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        payload = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            options={"require": ["sub"]},
        )
        return claims_to_principal(payload)
