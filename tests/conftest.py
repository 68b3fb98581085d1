"""Shared test fixtures."""
from __future__ import annotations

import asyncio
import dataclasses
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable
from uuid import UUID

import pytest

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import StorageError
from dm_service.domain.entities.conversation import Conversation, pair_key
from dm_service.domain.entities.message import Message
from dm_service.domain.entities.user import User
from dm_service.infrastructure.db.repositories._cursor import decode_cursor


@pytest.fixture
def alice() -> Principal:
    return Principal(user_id=1, email="alice@example.com")


@pytest.fixture
def bob() -> Principal:
    return Principal(user_id=2, email="bob@example.com")


def make_user(user_id: int, username: str | None = None) -> User:
    username = username or f"user{user_id}"
    return User(
        id=user_id,
        username=username,
        fullname=username.title(),
        email=f"{username}@example.com",
        avatar=None,
    )


def make_message(
    *,
    sender_id: int = 1,
    receiver_id: int = 2,
    body: str = "hello",
    is_read: bool = False,
    created_at: datetime | None = None,
) -> Message:
    ts = created_at or datetime.now(timezone.utc)
    return Message(
        id=uuid.uuid4(),
        sender_id=sender_id,
        receiver_id=receiver_id,
        body=body,
        is_read=is_read,
        created_at=ts,
        updated_at=ts,
    )


def make_conversation(
    user_a: int = 1,
    user_b: int = 2,
    *,
    messages: Iterable[Message] = (),
    conversation_id: UUID | None = None,
    updated_at: datetime | None = None,
) -> Conversation:
    now = datetime.now(timezone.utc)
    low, high = sorted((user_a, user_b))
    return Conversation(
        id=conversation_id or uuid.uuid4(),
        participants=(low, high),
        message_ids=tuple(m.id for m in messages),
        created_at=now,
        updated_at=updated_at or now,
    )


def minutes_ago(n: int) -> datetime:
    return datetime.now(timezone.utc) - timedelta(minutes=n)


@dataclass
class FakeUserReader:
    _users: dict[int, User] = field(default_factory=dict)

    def add(self, *users: User) -> None:
        for u in users:
            self._users[u.id] = u

    async def get_by_id(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    async def get_many(self, user_ids: Iterable[int]) -> list[User]:
        return [self._users[i] for i in user_ids if i in self._users]

    async def search(self, query: str, *, exclude_id: int | None = None, limit: int = 20) -> list[User]:
        q = query.lower()
        return [
            u for u in self._users.values()
            if u.id != exclude_id and (q in u.username.lower() or q in u.email.lower())
        ][:limit]


@dataclass
class FakeConversationReader:
    _store: dict[UUID, Conversation] = field(default_factory=dict)

    def add(self, *conversations: Conversation) -> None:
        for c in conversations:
            self._store[c.id] = c

    async def get_between(self, user_a: int, user_b: int) -> Conversation | None:
        key = pair_key(user_a, user_b)
        for c in self._store.values():
            if c.pair_key == key:
                return c
        return None

    async def list_for_user(self, user_id: int) -> list[Conversation]:
        # deliberately unordered: the service owns ordering
        return [c for c in self._store.values() if user_id in c.participants]


@dataclass
class FakeConversationWriter:
    _reader: FakeConversationReader
    append_failures: int = 0
    append_calls: int = 0

    async def create_if_not_exists(self, conversation: Conversation) -> tuple[Conversation, bool]:
        existing = await self._reader.get_between(*conversation.participants)
        if existing is not None:
            return existing, False
        self._reader._store[conversation.id] = conversation
        return conversation, True

    async def append_message(self, conversation_id: UUID, message_id: UUID, ts: datetime) -> None:
        self.append_calls += 1
        if self.append_failures > 0:
            self.append_failures -= 1
            raise StorageError("append failed")
        conv = self._reader._store.get(conversation_id)
        if conv is None:
            raise StorageError(f"Conversation {conversation_id} missing on append")
        self._reader._store[conversation_id] = dataclasses.replace(
            conv, message_ids=conv.message_ids + (message_id,), updated_at=ts,
        )


@dataclass
class FakeMessageReader:
    _store: dict[UUID, Message] = field(default_factory=dict)

    def add(self, *messages: Message) -> None:
        for m in messages:
            self._store[m.id] = m

    async def get_by_id(self, message_id: UUID) -> Message | None:
        return self._store.get(message_id)

    async def get_many(self, message_ids: Iterable[UUID]) -> list[Message]:
        return [self._store[i] for i in message_ids if i in self._store]

    async def list_by_ids(
        self, message_ids: Iterable[UUID], *, cursor: str | None = None, limit: int = 50,
    ) -> list[Message]:
        found = [self._store[i] for i in message_ids if i in self._store]
        if cursor:
            before = decode_cursor(cursor)
            found = [m for m in found if (m.created_at, m.id) < before]
        found.sort(key=lambda m: (m.created_at, m.id), reverse=True)
        return found[:limit]

    async def count_unread_by_sender(self, receiver_id: int) -> dict[int, int]:
        counts: dict[int, int] = {}
        for m in self._store.values():
            if m.receiver_id == receiver_id and not m.is_read:
                counts[m.sender_id] = counts.get(m.sender_id, 0) + 1
        return counts


@dataclass
class FakeMessageWriter:
    _reader: FakeMessageReader
    fail_create: bool = False
    mark_read_calls: int = 0

    async def create(self, message: Message) -> Message:
        if self.fail_create:
            raise StorageError("insert failed")
        self._reader._store[message.id] = message
        return message

    async def mark_read(self, message_id: UUID, ts: datetime) -> Message | None:
        self.mark_read_calls += 1
        msg = self._reader._store.get(message_id)
        if msg is None:
            return None
        msg = dataclasses.replace(msg, is_read=True, updated_at=ts)
        self._reader._store[message_id] = msg
        return msg


@dataclass
class FakeNotifier:
    published: list[Message] = field(default_factory=list)
    fail: bool = False
    hang: bool = False

    async def publish(self, message: Message) -> None:
        if self.hang:
            await asyncio.Event().wait()
        if self.fail:
            raise ConnectionError("redis down")
        self.published.append(message)


@dataclass
class FakeUoW:
    """In-memory UoW for unit tests."""
    users: FakeUserReader = field(default_factory=FakeUserReader)
    conversations: FakeConversationReader = field(default_factory=FakeConversationReader)
    conversations_w: FakeConversationWriter | None = None
    messages: FakeMessageReader = field(default_factory=FakeMessageReader)
    messages_w: FakeMessageWriter | None = None
    commits: int = 0
    rollbacks: int = 0

    def __post_init__(self) -> None:
        if self.conversations_w is None:
            self.conversations_w = FakeConversationWriter(self.conversations)
        if self.messages_w is None:
            self.messages_w = FakeMessageWriter(self.messages)

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1


@pytest.fixture
def uow() -> FakeUoW:
    """UoW pre-populated with users 1 (alice), 2 (bob) and 3 (carol)."""
    uow = FakeUoW()
    uow.users.add(make_user(1, "alice"), make_user(2, "bob"), make_user(3, "carol"))
    return uow


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture(autouse=True)
def _no_retry_delay(monkeypatch):
    from dm_service.services import message_service

    monkeypatch.setattr(message_service, "APPEND_RETRY_DELAY_SECONDS", 0)
