from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from dm_service.application.dto.conversation import ConversationView
from dm_service.application.dto.principal import Principal
from dm_service.application.uow import UnitOfWork
from dm_service.domain.entities.conversation import Conversation

logger = logging.getLogger(__name__)


async def resolve_conversation(
    user_a: int,
    user_b: int,
    uow: UnitOfWork,
) -> Conversation:
    """Return the conversation between two users, creating it on first contact."""
    existing = await uow.conversations.get_between(user_a, user_b)
    if existing is not None:
        return existing

    now = datetime.now(timezone.utc)
    low, high = sorted((user_a, user_b))
    conversation = Conversation(
        id=uuid.uuid4(),
        participants=(low, high),
        message_ids=(),
        created_at=now,
        updated_at=now,
    )
    conversation, created = await uow.conversations_w.create_if_not_exists(conversation)
    if created:
        await uow.commit()
        logger.info("Created conversation %s for users %d/%d", conversation.id, low, high)
    return conversation


async def list_conversations(
    principal: Principal,
    uow: UnitOfWork,
) -> list[ConversationView]:
    """Build the caller's inbox: counterpart profile, preview message, unread count.

    Ordered by ``updated_at`` descending; ties are broken by conversation id
    ascending so the order is stable across calls.
    """
    user_id = principal.user_id
    conversations = await uow.conversations.list_for_user(user_id)
    if not conversations:
        return []

    other_ids = {
        other
        for c in conversations
        if (other := c.other_participant(user_id)) is not None
    }
    users = {u.id: u for u in await uow.users.get_many(other_ids)}

    last_ids = [c.last_message_id for c in conversations if c.last_message_id]
    last_messages = {m.id: m for m in await uow.messages.get_many(last_ids)}

    unread = await uow.messages.count_unread_by_sender(user_id)

    views: list[ConversationView] = []
    for conv in conversations:
        other_id = conv.other_participant(user_id)
        other = users.get(other_id) if other_id is not None else None
        if other is None:
            logger.warning(
                "Skipping conversation %s: counterpart %s not resolvable",
                conv.id, other_id,
            )
            continue
        last_id = conv.last_message_id
        views.append(
            ConversationView(
                id=conv.id,
                other_participant=other,
                last_message=last_messages.get(last_id) if last_id else None,
                unread_count=unread.get(other.id, 0),
                updated_at=conv.updated_at,
            )
        )

    views.sort(key=lambda v: v.id)
    views.sort(key=lambda v: v.updated_at, reverse=True)
    return views
