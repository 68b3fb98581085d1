from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone

from dm_service.application.dto.message import SendMessageDTO
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import NotFoundError, StorageError, ValidationError
from dm_service.application.policies.permissions import assert_not_self
from dm_service.application.ports.bus import Notifier
from dm_service.application.uow import UnitOfWork
from dm_service.config import settings
from dm_service.domain.entities.message import Message
from dm_service.services.conversation_service import resolve_conversation

logger = logging.getLogger(__name__)

APPEND_MAX_ATTEMPTS = 3
APPEND_RETRY_DELAY_SECONDS = 0.05
HISTORY_MAX_LIMIT = 200
NOTIFY_TIMEOUT_SECONDS = settings.NOTIFY_TIMEOUT_SECONDS


async def send_message(
    principal: Principal,
    dto: SendMessageDTO,
    uow: UnitOfWork,
    notifier: Notifier,
) -> Message:
    """Store a message and link it into the pair's conversation.

    The message row is committed before it is appended to the conversation.
    If the append keeps failing the message stays stored but unlinked and
    StorageError is raised.
    """
    if not dto.body or not dto.body.strip():
        raise ValidationError("Message body must not be empty")
    if dto.target_user_id <= 0:
        raise ValidationError("Invalid target user id")

    target = await uow.users.get_by_id(dto.target_user_id)
    if target is None:
        raise NotFoundError("Target user not found")

    assert_not_self(principal, target.id)

    now = datetime.now(timezone.utc)
    msg = Message(
        id=uuid.uuid4(),
        sender_id=principal.user_id,
        receiver_id=target.id,
        body=dto.body,
        is_read=False,
        created_at=now,
        updated_at=now,
    )

    conversation = await resolve_conversation(principal.user_id, target.id, uow)

    msg = await uow.messages_w.create(msg)
    await uow.commit()

    await _append_with_retry(uow, conversation.id, msg)

    await _notify(notifier, msg)
    return msg


async def _append_with_retry(
    uow: UnitOfWork,
    conversation_id: uuid.UUID,
    msg: Message,
) -> None:
    for attempt in range(1, APPEND_MAX_ATTEMPTS + 1):
        try:
            await uow.conversations_w.append_message(
                conversation_id, msg.id, datetime.now(timezone.utc),
            )
            await uow.commit()
            return
        except StorageError:
            await uow.rollback()
            if attempt == APPEND_MAX_ATTEMPTS:
                logger.error(
                    "Message %s stored but not linked to conversation %s after %d attempts",
                    msg.id, conversation_id, attempt,
                )
                raise
            logger.warning(
                "Append of message %s to conversation %s failed (attempt %d), retrying",
                msg.id, conversation_id, attempt,
            )
            await asyncio.sleep(APPEND_RETRY_DELAY_SECONDS * attempt)


async def _notify(notifier: Notifier, msg: Message) -> None:
    try:
        await asyncio.wait_for(notifier.publish(msg), NOTIFY_TIMEOUT_SECONDS)
    except TimeoutError:
        logger.warning(
            "Publishing message %s timed out after %.1fs", msg.id, NOTIFY_TIMEOUT_SECONDS,
        )
    except Exception:
        logger.warning("Failed to publish message %s", msg.id, exc_info=True)


async def get_message_history(
    principal: Principal,
    peer_id: int,
    uow: UnitOfWork,
    *,
    limit: int = 50,
    cursor: str | None = None,
) -> list[Message]:
    """Most recent messages between the caller and peer, newest first."""
    if not 1 <= limit <= HISTORY_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {HISTORY_MAX_LIMIT}")

    conversation = await uow.conversations.get_between(principal.user_id, peer_id)
    if conversation is None or not conversation.message_ids:
        return []

    return await uow.messages.list_by_ids(
        conversation.message_ids, cursor=cursor, limit=limit,
    )
