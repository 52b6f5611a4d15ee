"""Message sync: best-effort batch insert, polling since a timestamp, paginated browse, delete."""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.errors import NotFoundError
from clipsync.messages.models import MessageItem, SyncedMessage
from clipsync.timeutil import as_utc, utcnow

log = logging.getLogger(__name__)


async def push_messages(
    session: AsyncSession,
    user_id: str,
    device_id: str,
    items: Sequence[MessageItem],
) -> Tuple[int, List[int]]:
    """
    Store each message independently (no dedup). Returns (stored count, skipped indexes).
    A failing item is logged and skipped; earlier items stay stored.
    """
    synced = 0
    skipped: List[int] = []
    for index, item in enumerate(items):
        now = utcnow()
        try:
            async with session.begin_nested():
                session.add(
                    SyncedMessage(
                        user_id=user_id,
                        body=item.body,
                        sender=item.sender,
                        address=item.address,
                        received_at=as_utc(item.received_at) if item.received_at else now,
                        device_id=device_id,
                        created_at=now,
                    )
                )
        except SQLAlchemyError as e:
            log.warning("push_messages user=%s device=%s skipped item %d: %s", user_id, device_id, index, e)
            skipped.append(index)
            continue
        synced += 1
    await session.commit()
    log.info("push_messages user=%s device=%s synced=%d skipped=%d", user_id, device_id, synced, len(skipped))
    return synced, skipped


async def list_since(session: AsyncSession, user_id: str, since: datetime) -> List[SyncedMessage]:
    """Messages stored after since, oldest first, so a poller never skips one."""
    result = await session.execute(
        select(SyncedMessage)
        .where(SyncedMessage.user_id == user_id, SyncedMessage.created_at > as_utc(since))
        .order_by(SyncedMessage.created_at.asc())
    )
    return list(result.scalars().all())


async def list_messages(
    session: AsyncSession,
    user_id: str,
    *,
    page: int,
    page_size: int,
    since: Optional[datetime] = None,
) -> Tuple[List[SyncedMessage], int]:
    """Return (messages on page, total). Newest received first."""
    conditions = [SyncedMessage.user_id == user_id]
    if since is not None:
        conditions.append(SyncedMessage.created_at > as_utc(since))
    total = await session.scalar(select(func.count()).select_from(SyncedMessage).where(*conditions))
    result = await session.execute(
        select(SyncedMessage)
        .where(*conditions)
        .order_by(SyncedMessage.received_at.desc(), SyncedMessage.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total or 0


async def delete_message(session: AsyncSession, user_id: str, message_id: str) -> None:
    result = await session.execute(
        delete(SyncedMessage)
        .where(SyncedMessage.id == message_id, SyncedMessage.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Message not found")
    await session.commit()
    log.info("Message deleted user=%s id=%s", user_id, message_id)


async def clear_messages(session: AsyncSession, user_id: str) -> int:
    """Delete every message of the user. Returns number removed."""
    result = await session.execute(
        delete(SyncedMessage)
        .where(SyncedMessage.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    log.info("Messages cleared user=%s count=%d", user_id, result.rowcount)
    return result.rowcount or 0
