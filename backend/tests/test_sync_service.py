"""Tests for the sync reconciler: pull, push, status, session upsert."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from clipsync.clips.models import Clip, ClipCreate, ClipUpdate
from clipsync.clips.service import build_clip, create_clip, update_clip
from clipsync.sync import service as sync_service
from clipsync.sync.models import PushClip, SyncSession
from clipsync.sync.service import get_status, pull, push
from clipsync.timeutil import utcnow


async def _session_rows(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(select(SyncSession).where(SyncSession.user_id == user_id))
        return list(result.scalars().all())


@pytest.mark.asyncio
async def test_push_then_pull_returns_pushed_clips(session_factory, user_id):
    """Pushing N clips then pulling without cursor returns at least those N."""
    items = [PushClip(content=f"clip {i}") for i in range(3)]
    async with session_factory() as session:
        outcome = await push(session, user_id, "dev1", items)
    assert outcome.synced == 3
    assert outcome.skipped == []

    async with session_factory() as session:
        clips, cursor = await pull(session, user_id, "dev1")
    assert {c.content for c in clips} >= {"clip 0", "clip 1", "clip 2"}
    assert all(c.synced for c in clips)
    assert cursor >= outcome.last_sync


@pytest.mark.asyncio
async def test_pull_orders_newest_created_first(session_factory, user_id):
    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="older")])
    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="newer")])
    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev1")
    assert [c.content for c in clips] == ["newer", "older"]


@pytest.mark.asyncio
async def test_pull_with_cursor_returns_only_changes(session_factory, user_id):
    """Clips created or updated after the cursor come back; older untouched ones do not."""
    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="old"), PushClip(content="edited")])
    async with session_factory() as session:
        all_clips, cursor = await pull(session, user_id, "dev2")
    edited = next(c for c in all_clips if c.content == "edited")

    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="fresh")])
    async with session_factory() as session:
        await update_clip(session, user_id, edited.id, ClipUpdate(tags=["work"]))

    async with session_factory() as session:
        clips, next_cursor = await pull(session, user_id, "dev2", cursor)
    assert {c.content for c in clips} == {"fresh", "edited"}
    assert next_cursor > cursor

    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev2", next_cursor)
    assert clips == []


@pytest.mark.asyncio
async def test_pull_is_scoped_to_user(session_factory, user_id):
    async with session_factory() as session:
        await push(session, "someone-else-" + user_id, "dev1", [PushClip(content="not yours")])
    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev1")
    assert clips == []


@pytest.mark.asyncio
async def test_push_is_additive(session_factory, user_id):
    """Same content pushed twice is stored twice under different ids."""
    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="same")])
    async with session_factory() as session:
        await push(session, user_id, "dev1", [PushClip(content="same")])
    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev1")
    same = [c for c in clips if c.content == "same"]
    assert len(same) == 2
    assert same[0].id != same[1].id


@pytest.mark.asyncio
async def test_push_computes_preview_and_keeps_metadata(session_factory, user_id):
    copied = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    long_content = "x" * 250
    item = PushClip(content=long_content, device_name="Pixel", tags=["a", "b"], copied_at=copied)
    async with session_factory() as session:
        await push(session, user_id, "dev1", [item, PushClip(content="short" * 10)])
    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev1")
    by_content = {c.content: c for c in clips}
    long_clip = by_content[long_content]
    assert len(long_clip.content_preview) == 200
    assert long_clip.content_preview == long_content[:200]
    assert long_clip.device_name == "Pixel"
    assert sorted(long_clip.tags) == ["a", "b"]
    assert long_clip.copied_at == copied
    short_clip = by_content["short" * 10]
    assert short_clip.content_preview == short_clip.content


@pytest.mark.asyncio
async def test_push_skips_failing_item_and_keeps_others(monkeypatch, session_factory, user_id):
    """A rejected insert rolls back its savepoint only; earlier and later items stay stored."""
    real_build = sync_service.build_clip

    def flaky_build(uid, content, **kwargs):
        clip = real_build(uid, content, **kwargs)
        if content == "boom":
            clip.content = None  # NOT NULL violation at insert time
        return clip

    monkeypatch.setattr(sync_service, "build_clip", flaky_build)
    items = [PushClip(content="a"), PushClip(content="boom"), PushClip(content="c")]
    async with session_factory() as session:
        outcome = await push(session, user_id, "dev1", items)
    assert outcome.synced == 2
    assert outcome.skipped == [1]
    async with session_factory() as session:
        clips, _ = await pull(session, user_id, "dev1")
    assert sorted(c.content for c in clips) == ["a", "c"]
    async with session_factory() as session:
        stored = await session.scalar(select(func.count()).select_from(Clip).where(Clip.user_id == user_id))
    assert stored == 2


@pytest.mark.asyncio
async def test_sync_session_upserted_once_per_device(session_factory, user_id):
    """Pull and push from the same device keep one session row, updated each time."""
    async with session_factory() as session:
        _, first = await pull(session, user_id, "dev1")
    rows = await _session_rows(session_factory, user_id)
    assert len(rows) == 1
    assert rows[0].last_sync == first

    async with session_factory() as session:
        outcome = await push(session, user_id, "dev1", [PushClip(content="x")])
    async with session_factory() as session:
        await pull(session, user_id, "dev2")
    rows = await _session_rows(session_factory, user_id)
    assert sorted(r.device_id for r in rows) == ["dev1", "dev2"]
    dev1 = next(r for r in rows if r.device_id == "dev1")
    assert dev1.last_sync == outcome.last_sync
    assert dev1.last_sync > first


@pytest.mark.asyncio
async def test_status_after_push(session_factory, user_id):
    """Push one clip for dev1; status reports the device's last sync and no unsynced clips."""
    async with session_factory() as session:
        outcome = await push(session, user_id, "dev1", [PushClip(content="hello")])
    assert outcome.synced == 1
    async with session_factory() as session:
        status = await get_status(session, user_id, "dev1")
    assert status.total_clips >= 1
    assert status.unsynced_clips == 0
    assert status.last_sync == outcome.last_sync


@pytest.mark.asyncio
async def test_status_for_unknown_device(session_factory, user_id):
    async with session_factory() as session:
        await create_clip(session, user_id, ClipCreate(content="hi"))
    async with session_factory() as session:
        status = await get_status(session, user_id, "never-synced")
    assert status.last_sync is None
    assert status.total_clips == 1


@pytest.mark.asyncio
async def test_status_counts_unsynced_clips(session_factory, user_id):
    """unsynced counter reflects clips with synced=false, whatever wrote them."""
    async with session_factory() as session:
        session.add(build_clip(user_id, "local only", synced=False))
        await session.commit()
    async with session_factory() as session:
        status = await get_status(session, user_id, None)
        sessions = await session.scalar(
            select(func.count()).select_from(SyncSession).where(SyncSession.user_id == user_id)
        )
    assert status.unsynced_clips == 1
    assert sessions == 0


@pytest.mark.asyncio
async def test_pull_cursor_is_server_time(session_factory, user_id):
    """Returned cursor comes from the server clock, not from the client's cursor."""
    client_cursor = utcnow() - timedelta(days=30)
    before = utcnow()
    async with session_factory() as session:
        _, cursor = await pull(session, user_id, "dev1", client_cursor)
    assert cursor >= before


@pytest.mark.asyncio
async def test_concurrent_pull_and_push_keep_one_session(session_factory, user_id):
    """Pull and push racing on one device end with a single session row."""

    async def do_pull():
        async with session_factory() as session:
            _, cursor = await pull(session, user_id, "dev1")
            return cursor

    async def do_push():
        async with session_factory() as session:
            outcome = await push(session, user_id, "dev1", [PushClip(content="race")])
            return outcome.last_sync

    pulled_at, pushed_at = await asyncio.gather(do_pull(), do_push())
    rows = await _session_rows(session_factory, user_id)
    assert len(rows) == 1
    assert rows[0].device_id == "dev1"
    assert rows[0].last_sync in (pulled_at, pushed_at)
