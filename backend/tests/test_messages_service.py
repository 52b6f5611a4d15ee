"""Tests for message sync service."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from clipsync.errors import NotFoundError
from clipsync.messages import service as msg_service
from clipsync.messages.models import MessageItem, SyncedMessage
from clipsync.messages.service import (
    clear_messages,
    delete_message,
    list_messages,
    list_since,
    push_messages,
)
from clipsync.timeutil import utcnow


def _items(*bodies, received_at=None):
    return [MessageItem(body=b, sender="Alice", address="+4312345", received_at=received_at) for b in bodies]


@pytest.mark.asyncio
async def test_push_messages_stores_each_item(session_factory, user_id):
    received = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    async with session_factory() as session:
        synced, skipped = await push_messages(session, user_id, "phone", _items("one", "two", received_at=received))
    assert synced == 2
    assert skipped == []
    async with session_factory() as session:
        messages, total = await list_messages(session, user_id, page=1, page_size=10)
    assert total == 2
    assert {m.body for m in messages} == {"one", "two"}
    assert all(m.device_id == "phone" and m.received_at == received for m in messages)


@pytest.mark.asyncio
async def test_push_messages_no_dedup(session_factory, user_id):
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("same"))
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("same"))
    async with session_factory() as session:
        _, total = await list_messages(session, user_id, page=1, page_size=10)
    assert total == 2


@pytest.mark.asyncio
async def test_push_messages_skips_failing_item(monkeypatch, session_factory, user_id):
    """A rejected insert rolls back only its own savepoint."""
    real_model = msg_service.SyncedMessage

    def flaky_model(**kwargs):
        if kwargs["body"] == "bad":
            kwargs["body"] = None  # NOT NULL violation at insert time
        return real_model(**kwargs)

    monkeypatch.setattr(msg_service, "SyncedMessage", flaky_model)
    async with session_factory() as session:
        synced, skipped = await push_messages(session, user_id, "phone", _items("ok", "bad", "fine"))
    assert synced == 2
    assert skipped == [1]
    async with session_factory() as session:
        result = await session.execute(select(SyncedMessage.body).where(SyncedMessage.user_id == user_id))
    assert sorted(result.scalars().all()) == ["fine", "ok"]


@pytest.mark.asyncio
async def test_list_since_ascending_and_strictly_after(session_factory, user_id):
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("before"))
    cutoff = utcnow()
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("first"))
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("second"))
    async with session_factory() as session:
        messages = await list_since(session, user_id, cutoff)
    assert [m.body for m in messages] == ["first", "second"]


@pytest.mark.asyncio
async def test_list_messages_orders_by_received_desc(session_factory, user_id):
    base = datetime(2024, 3, 1, tzinfo=timezone.utc)
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("mid", received_at=base + timedelta(hours=1)))
        await push_messages(session, user_id, "phone", _items("old", received_at=base))
        await push_messages(session, user_id, "phone", _items("new", received_at=base + timedelta(hours=2)))
    async with session_factory() as session:
        messages, _ = await list_messages(session, user_id, page=1, page_size=10)
    assert [m.body for m in messages] == ["new", "mid", "old"]
    async with session_factory() as session:
        messages, total = await list_messages(session, user_id, page=2, page_size=2)
    assert total == 3
    assert [m.body for m in messages] == ["old"]


@pytest.mark.asyncio
async def test_list_messages_since_filters_on_stored_time(session_factory, user_id):
    """since compares against when the server stored the message, not received_at."""
    old_received = datetime(2020, 1, 1, tzinfo=timezone.utc)
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("earlier"))
    cutoff = utcnow()
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("later", received_at=old_received))
    async with session_factory() as session:
        messages, total = await list_messages(session, user_id, page=1, page_size=10, since=cutoff)
    assert total == 1
    assert [m.body for m in messages] == ["later"]
    async with session_factory() as session:
        _, total = await list_messages(session, user_id, page=1, page_size=10, since=cutoff + timedelta(days=1))
    assert total == 0


@pytest.mark.asyncio
async def test_delete_message_scoped_to_owner(session_factory, user_id):
    async with session_factory() as session:
        await push_messages(session, user_id, "phone", _items("a", "b"))
    async with session_factory() as session:
        messages, _ = await list_messages(session, user_id, page=1, page_size=10)
    target = messages[0].id
    async with session_factory() as session:
        with pytest.raises(NotFoundError):
            await delete_message(session, "intruder-" + user_id, target)
    async with session_factory() as session:
        await delete_message(session, user_id, target)
    async with session_factory() as session:
        assert await clear_messages(session, user_id) == 1
    async with session_factory() as session:
        _, total = await list_messages(session, user_id, page=1, page_size=10)
    assert total == 0
