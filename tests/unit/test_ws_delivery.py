from __future__ import annotations

import json

import pytest

from dm_service import app as app_module
from dm_service.api.v1.routers import ws as ws_router
from dm_service.domain.value_objects.enums import WsEvent
from dm_service.infrastructure.bus.serializer import message_to_payload
from dm_service.infrastructure.ws.manager import ConnectionManager
from tests.conftest import make_message


class _FakeSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.sent: list[dict] = []
        self.broken = broken

    async def accept(self) -> None:
        self.accepted = True

    async def send_text(self, raw: str) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(raw))


@pytest.mark.asyncio
async def test_send_to_users_reaches_every_connection():
    manager = ConnectionManager()
    phone, laptop, other = _FakeSocket(), _FakeSocket(), _FakeSocket()
    await manager.connect(phone, "user:1")
    await manager.connect(laptop, "user:1")
    await manager.connect(other, "user:3")

    await manager.send_to_users((1, 2), WsEvent.MESSAGE_CREATED, {"body": "hi"})

    assert phone.accepted
    assert phone.sent == [{"type": "message.created", "data": {"body": "hi"}}]
    assert laptop.sent == phone.sent
    assert other.sent == []


@pytest.mark.asyncio
async def test_dead_connections_are_dropped():
    manager = ConnectionManager()
    dead = _FakeSocket(broken=True)
    await manager.connect(dead, "user:1")

    await manager.send_to_principal("user:1", WsEvent.PONG, {})
    dead.broken = False
    await manager.send_to_principal("user:1", WsEvent.PONG, {})

    assert dead.sent == []


@pytest.mark.asyncio
async def test_pubsub_event_delivered_to_both_parties(monkeypatch):
    manager = ConnectionManager()
    monkeypatch.setattr(ws_router, "manager", manager)
    sender, receiver = _FakeSocket(), _FakeSocket()
    await manager.connect(sender, "user:1")
    await manager.connect(receiver, "user:2")
    payload = message_to_payload(make_message(sender_id=1, receiver_id=2, body="yo"))

    await app_module._on_pubsub_event("new-message", payload)

    for sock in (sender, receiver):
        assert sock.sent == [{"type": "message.created", "data": payload}]


@pytest.mark.asyncio
async def test_malformed_pubsub_event_ignored(monkeypatch):
    manager = ConnectionManager()
    monkeypatch.setattr(ws_router, "manager", manager)
    sock = _FakeSocket()
    await manager.connect(sock, "user:1")

    await app_module._on_pubsub_event("new-message", {"body": "no ids"})
    await app_module._on_pubsub_event("something-else", {"sender_id": 1, "receiver_id": 2})

    assert sock.sent == []
