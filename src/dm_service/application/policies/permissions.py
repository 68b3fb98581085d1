from __future__ import annotations

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import ForbiddenError, NotFoundError, ValidationError
from dm_service.domain.entities.message import Message


def assert_can_mark_read(principal: Principal, message: Message | None) -> Message:
    """Raise if the message doesn't exist or the caller is not its receiver."""
    if message is None:
        raise NotFoundError("Message not found")

    if message.receiver_id != principal.user_id:
        raise ForbiddenError("Only the receiver can mark a message as read")

    return message


def assert_not_self(principal: Principal, target_user_id: int) -> None:
    if principal.user_id == target_user_id:
        raise ValidationError("Cannot message self")
