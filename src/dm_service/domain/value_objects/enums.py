from __future__ import annotations

from enum import StrEnum


class BusEvent(StrEnum):
    NEW_MESSAGE = "new-message"


class WsEvent(StrEnum):
    MESSAGE_CREATED = "message.created"
    MESSAGE_READ = "message.read"
    ERROR = "error"
    PONG = "pong"
