from __future__ import annotations

import uuid

import pytest

from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import ForbiddenError, NotFoundError
from dm_service.services import read_state_service
from tests.conftest import make_message


@pytest.fixture
def sent(uow):
    msg = make_message(sender_id=1, receiver_id=2, body="hi")
    uow.messages.add(msg)
    return msg


@pytest.mark.asyncio
async def test_receiver_marks_read(bob, uow, sent):
    updated = await read_state_service.mark_read(bob, sent.id, uow)

    assert updated.is_read is True
    assert updated.updated_at >= sent.updated_at
    assert (await uow.messages.get_by_id(sent.id)).is_read is True
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_sender_cannot_mark_read(alice, uow, sent):
    with pytest.raises(ForbiddenError):
        await read_state_service.mark_read(alice, sent.id, uow)

    assert (await uow.messages.get_by_id(sent.id)).is_read is False
    assert uow.messages_w.mark_read_calls == 0


@pytest.mark.asyncio
async def test_unrelated_user_cannot_mark_read(uow, sent):
    carol = Principal(user_id=3, email="carol@example.com")

    with pytest.raises(ForbiddenError):
        await read_state_service.mark_read(carol, sent.id, uow)


@pytest.mark.asyncio
async def test_mark_read_is_idempotent(bob, uow, sent):
    first = await read_state_service.mark_read(bob, sent.id, uow)
    second = await read_state_service.mark_read(bob, sent.id, uow)

    assert first == second
    assert uow.messages_w.mark_read_calls == 1
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_mark_read_unknown_message(bob, uow):
    with pytest.raises(NotFoundError):
        await read_state_service.mark_read(bob, uuid.uuid4(), uow)
