from __future__ import annotations

from dm_service.domain.entities.conversation import Conversation
from dm_service.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    low, high = sorted(model.participants)
    return Conversation(
        id=model.id,
        participants=(low, high),
        message_ids=tuple(model.message_ids or ()),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_values(entity: Conversation) -> dict:
    return {
        "id": entity.id,
        "participants": sorted(entity.participants),
        "pair_key": entity.pair_key,
        "message_ids": list(entity.message_ids),
        "created_at": entity.created_at,
        "updated_at": entity.updated_at,
    }
