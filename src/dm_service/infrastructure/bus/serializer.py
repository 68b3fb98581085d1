from __future__ import annotations

import dataclasses
import json
from datetime import datetime
from typing import Any
from uuid import UUID

from dm_service.domain.entities.message import Message


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, UUID):
            return str(o)
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def message_to_payload(message: Message) -> dict[str, Any]:
    payload = dataclasses.asdict(message)
    payload["id"] = str(message.id)
    payload["created_at"] = message.created_at.isoformat()
    payload["updated_at"] = message.updated_at.isoformat()
    return payload


def serialize_event(event_type: str, payload: dict[str, Any]) -> str:
    envelope = {"event": event_type, "data": payload}
    return json.dumps(envelope, cls=_Encoder)


def deserialize_event(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    data = json.loads(raw)
    return data["event"], data["data"]
