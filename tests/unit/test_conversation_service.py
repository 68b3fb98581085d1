from __future__ import annotations

import pytest

from dm_service.application.dto.message import SendMessageDTO
from dm_service.services import conversation_service, message_service
from tests.conftest import make_conversation, make_message, make_user, minutes_ago


@pytest.mark.asyncio
async def test_resolve_creates_once(uow):
    first = await conversation_service.resolve_conversation(1, 2, uow)
    second = await conversation_service.resolve_conversation(2, 1, uow)

    assert first.id == second.id
    assert first.participants == (1, 2)
    assert first.message_ids == ()
    assert uow.commits == 1


@pytest.mark.asyncio
async def test_resolve_returns_existing_unchanged(uow):
    existing = make_conversation(2, 3)
    uow.conversations.add(existing)

    conv = await conversation_service.resolve_conversation(3, 2, uow)

    assert conv == existing
    assert uow.commits == 0


@pytest.mark.asyncio
async def test_list_conversations_empty(alice, uow):
    assert await conversation_service.list_conversations(alice, uow) == []


@pytest.mark.asyncio
async def test_scenario_two_users(alice, bob, uow, notifier):
    hi = await message_service.send_message(
        alice, SendMessageDTO(target_user_id=2, body="hi"), uow, notifier,
    )
    hello = await message_service.send_message(
        bob, SendMessageDTO(target_user_id=1, body="hello"), uow, notifier,
    )

    views = await conversation_service.list_conversations(alice, uow)

    assert len(views) == 1
    view = views[0]
    assert view.other_participant.id == 2
    assert view.last_message == hello
    assert view.unread_count == 1

    conv = await uow.conversations.get_between(1, 2)
    assert conv.message_ids == (hi.id, hello.id)


@pytest.mark.asyncio
async def test_list_never_returns_caller_as_counterpart(alice, uow):
    uow.conversations.add(make_conversation(1, 2), make_conversation(3, 1))

    views = await conversation_service.list_conversations(alice, uow)

    assert {v.other_participant.id for v in views} == {2, 3}


@pytest.mark.asyncio
async def test_list_ordering_newest_first_with_id_tiebreak(alice, uow):
    ts = minutes_ago(5)
    old = make_conversation(1, 2, updated_at=minutes_ago(30))
    tie_a = make_conversation(1, 3, updated_at=ts)
    tie_b = make_conversation(1, 4, updated_at=ts)
    uow.users.add(make_user(4))
    uow.conversations.add(old, tie_b, tie_a)

    views = await conversation_service.list_conversations(alice, uow)

    ties = sorted([tie_a.id, tie_b.id])
    assert [v.id for v in views] == [*ties, old.id]


@pytest.mark.asyncio
async def test_list_without_messages_has_no_preview(alice, uow):
    uow.conversations.add(make_conversation(1, 2))

    views = await conversation_service.list_conversations(alice, uow)

    assert views[0].last_message is None
    assert views[0].unread_count == 0


@pytest.mark.asyncio
async def test_list_preview_is_last_appended(alice, uow):
    first = make_message(sender_id=2, receiver_id=1, body="first", created_at=minutes_ago(2))
    second = make_message(sender_id=1, receiver_id=2, body="second", created_at=minutes_ago(1))
    uow.messages.add(first, second)
    uow.conversations.add(make_conversation(1, 2, messages=[first, second]))

    views = await conversation_service.list_conversations(alice, uow)

    assert views[0].last_message.body == "second"
    assert views[0].unread_count == 1


@pytest.mark.asyncio
async def test_list_skips_unknown_counterpart(alice, uow):
    uow.conversations.add(make_conversation(1, 2), make_conversation(1, 42))

    views = await conversation_service.list_conversations(alice, uow)

    assert [v.other_participant.id for v in views] == [2]
