"""Clip service: create, list, update, toggle, delete. Every query is scoped to the owner."""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.clips.models import PREVIEW_LENGTH, Clip, ClipCreate, ClipUpdate
from clipsync.errors import NotFoundError
from clipsync.timeutil import as_utc, utcnow

log = logging.getLogger(__name__)


def make_preview(content: str) -> str:
    """First PREVIEW_LENGTH characters of content (all of it when shorter)."""
    return content[:PREVIEW_LENGTH]


def build_clip(
    user_id: str,
    content: str,
    *,
    device_name: Optional[str] = None,
    tags: Optional[List[str]] = None,
    copied_at: Optional[datetime] = None,
    synced: bool = True,
) -> Clip:
    """New Clip with fresh id, preview and server timestamps. Not added to any session."""
    now = utcnow()
    return Clip(
        user_id=user_id,
        content=content,
        content_preview=make_preview(content),
        copied_at=as_utc(copied_at) if copied_at else now,
        is_favorite=False,
        is_pinned=False,
        tags=list(tags or []),
        device_name=device_name or None,
        synced=synced,
        created_at=now,
        updated_at=now,
    )


async def create_clip(session: AsyncSession, user_id: str, payload: ClipCreate) -> Clip:
    """Store a single clip copied now."""
    clip = build_clip(user_id, payload.content, device_name=payload.device_name, tags=payload.tags)
    session.add(clip)
    await session.commit()
    log.info("Clip created user=%s id=%s", user_id, clip.id)
    return clip


async def list_clips(
    session: AsyncSession,
    user_id: str,
    *,
    page: int = 1,
    page_size: int = 20,
    search: Optional[str] = None,
    favorites_only: bool = False,
) -> Tuple[List[Clip], int]:
    """Return (clips on page, total matching). Pinned first, then most recently copied."""
    conditions = [Clip.user_id == user_id]
    if search:
        pattern = f"%{search}%"
        conditions.append(or_(Clip.content.ilike(pattern), Clip.content_preview.ilike(pattern)))
    if favorites_only:
        conditions.append(Clip.is_favorite.is_(True))
    total = await session.scalar(select(func.count()).select_from(Clip).where(*conditions))
    result = await session.execute(
        select(Clip)
        .where(*conditions)
        .order_by(Clip.is_pinned.desc(), Clip.copied_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return list(result.scalars().all()), total or 0


async def get_clip(session: AsyncSession, user_id: str, clip_id: str) -> Clip:
    """Return the caller's clip or raise NotFoundError (also for clips of other users)."""
    result = await session.execute(select(Clip).where(Clip.id == clip_id, Clip.user_id == user_id))
    clip = result.scalar_one_or_none()
    if clip is None:
        raise NotFoundError("Clip not found")
    return clip


async def update_clip(session: AsyncSession, user_id: str, clip_id: str, payload: ClipUpdate) -> Clip:
    clip = await get_clip(session, user_id, clip_id)
    if payload.content is not None:
        clip.content = payload.content
    if payload.is_favorite is not None:
        clip.is_favorite = payload.is_favorite
    if payload.is_pinned is not None:
        clip.is_pinned = payload.is_pinned
    if payload.tags is not None:
        clip.tags = list(payload.tags)
    clip.updated_at = utcnow()
    await session.commit()
    log.info("Clip updated user=%s id=%s", user_id, clip_id)
    return clip


async def toggle_favorite(session: AsyncSession, user_id: str, clip_id: str) -> Clip:
    clip = await get_clip(session, user_id, clip_id)
    clip.is_favorite = not clip.is_favorite
    clip.updated_at = utcnow()
    await session.commit()
    return clip


async def toggle_pin(session: AsyncSession, user_id: str, clip_id: str) -> Clip:
    clip = await get_clip(session, user_id, clip_id)
    clip.is_pinned = not clip.is_pinned
    clip.updated_at = utcnow()
    await session.commit()
    return clip


async def delete_clip(session: AsyncSession, user_id: str, clip_id: str) -> None:
    """Delete one clip; NotFoundError if the caller owns no clip with that id."""
    result = await session.execute(
        delete(Clip)
        .where(Clip.id == clip_id, Clip.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Clip not found")
    await session.commit()
    log.info("Clip deleted user=%s id=%s", user_id, clip_id)


async def delete_all_clips(session: AsyncSession, user_id: str) -> int:
    """Delete every clip of the user. Returns number removed."""
    result = await session.execute(
        delete(Clip).where(Clip.user_id == user_id).execution_options(synchronize_session=False)
    )
    await session.commit()
    log.info("All clips deleted user=%s count=%d", user_id, result.rowcount)
    return result.rowcount or 0
