from __future__ import annotations

from pydantic import BaseModel


class UserPublicResponse(BaseModel):
    id: int
    username: str
    fullname: str
    email: str
    avatar: str | None

    model_config = {"from_attributes": True}
