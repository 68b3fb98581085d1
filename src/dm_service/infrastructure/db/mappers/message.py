from __future__ import annotations

from dm_service.domain.entities.message import Message
from dm_service.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        sender_id=model.sender_id,
        receiver_id=model.receiver_id,
        body=model.body,
        is_read=model.is_read,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    return MessageModel(
        id=entity.id,
        sender_id=entity.sender_id,
        receiver_id=entity.receiver_id,
        body=entity.body,
        is_read=entity.is_read,
        created_at=entity.created_at,
        updated_at=entity.updated_at,
    )
