from __future__ import annotations

import uuid
from datetime import datetime, timezone

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import NotFoundError
from dm_service.application.policies.permissions import assert_can_mark_read
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.message import Message


async def mark_read(
    principal: Principal,
    message_id: uuid.UUID,
    uow: UnitOfWork,
) -> Message:
    message = await uow.messages.get_by_id(message_id)
    message = assert_can_mark_read(principal, message)
    if message.is_read:
        return message

    updated = await uow.messages_w.mark_read(message_id, datetime.now(timezone.utc))
    if updated is None:
        raise NotFoundError("Message not found")
    await uow.commit()
    return updated
