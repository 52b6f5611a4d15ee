"""
Sync reconciler: incremental pull by timestamp cursor, additive push, per-device watermark.

Pull hands back the server time taken before the query as the next cursor, so a
clip written while the query runs is delivered again on the next pull rather than
never. Push only ever inserts; identical content pushed twice is stored twice.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.clips.models import Clip
from clipsync.clips.service import build_clip
from clipsync.db.types import new_id
from clipsync.sync.models import PushClip, SyncSession
from clipsync.timeutil import as_utc, utcnow

log = logging.getLogger(__name__)


@dataclass
class PushOutcome:
    synced: int
    last_sync: datetime
    skipped: List[int] = field(default_factory=list)


@dataclass
class SyncStatus:
    last_sync: Optional[datetime]
    total_clips: int
    unsynced_clips: int


async def touch_session(session: AsyncSession, user_id: str, device_id: str, now: datetime) -> None:
    """Create or update the (user, device) session with last_sync=now in one statement."""
    stmt = sqlite_insert(SyncSession).values(
        id=new_id(),
        user_id=user_id,
        device_id=device_id,
        last_sync=now,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[SyncSession.user_id, SyncSession.device_id],
        set_={"last_sync": now, "updated_at": now},
    )
    await session.execute(stmt)


async def pull(
    session: AsyncSession,
    user_id: str,
    device_id: str,
    last_sync: Optional[datetime] = None,
) -> Tuple[List[Clip], datetime]:
    """
    Return (clips created or updated after last_sync, new cursor), newest-created first.
    Without last_sync every clip of the user is returned.
    """
    now = utcnow()
    query = select(Clip).where(Clip.user_id == user_id)
    if last_sync is not None:
        cursor = as_utc(last_sync)
        query = query.where(or_(Clip.created_at > cursor, Clip.updated_at > cursor))
    result = await session.execute(query.order_by(Clip.created_at.desc()))
    clips = list(result.scalars().all())
    await touch_session(session, user_id, device_id, now)
    await session.commit()
    log.info(
        "pull user=%s device=%s since=%s count=%d",
        user_id,
        device_id,
        last_sync.isoformat() if last_sync else "-",
        len(clips),
    )
    return clips, now


async def store_clips(
    session: AsyncSession,
    user_id: str,
    device_id: str,
    items: Sequence[PushClip],
) -> Tuple[int, List[int]]:
    """
    Insert each item in its own savepoint. A failing item is logged and skipped;
    items stored before it stay stored. Returns (stored count, skipped indexes).
    """
    synced = 0
    skipped: List[int] = []
    for index, item in enumerate(items):
        try:
            async with session.begin_nested():
                session.add(
                    build_clip(
                        user_id,
                        item.content,
                        device_name=item.device_name,
                        tags=item.tags,
                        copied_at=item.copied_at,
                        synced=True,
                    )
                )
        except SQLAlchemyError as e:
            log.warning("push user=%s device=%s skipped item %d: %s", user_id, device_id, index, e)
            skipped.append(index)
            continue
        synced += 1
    return synced, skipped


async def push(
    session: AsyncSession,
    user_id: str,
    device_id: str,
    items: Sequence[PushClip],
) -> PushOutcome:
    """Store every item as a new synced clip and touch the device session."""
    synced, skipped = await store_clips(session, user_id, device_id, items)
    now = utcnow()
    await touch_session(session, user_id, device_id, now)
    await session.commit()
    log.info(
        "push user=%s device=%s received=%d synced=%d skipped=%d",
        user_id,
        device_id,
        len(items),
        synced,
        len(skipped),
    )
    return PushOutcome(synced=synced, last_sync=now, skipped=skipped)


async def get_status(session: AsyncSession, user_id: str, device_id: Optional[str]) -> SyncStatus:
    """last_sync of the device (None if it never synced) and clip counters of the user."""
    last_sync = None
    if device_id:
        last_sync = await session.scalar(
            select(SyncSession.last_sync).where(
                SyncSession.user_id == user_id,
                SyncSession.device_id == device_id,
            )
        )
    total = await session.scalar(select(func.count()).select_from(Clip).where(Clip.user_id == user_id))
    unsynced = await session.scalar(
        select(func.count()).select_from(Clip).where(Clip.user_id == user_id, Clip.synced.is_(False))
    )
    return SyncStatus(last_sync=last_sync, total_clips=total or 0, unsynced_clips=unsynced or 0)
