"""Clip routes: list, create, get, update, toggle, delete, legacy batch sync."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.dependencies import get_current_user_id
from clipsync.clips import service
from clipsync.clips.models import (
    ClipBatchRequest,
    ClipBatchResponse,
    ClipCreate,
    ClipResponse,
    ClipUpdate,
)
from clipsync.config import Settings, get_settings
from clipsync.db.session import get_db
from clipsync.schemas import DeletedCount, Page, total_pages
from clipsync.sync.models import PushClip
from clipsync.sync.service import push

router = APIRouter(prefix="/api/clips", tags=["clips"])
log = logging.getLogger(__name__)


@router.get("", response_model=Page[ClipResponse])
async def list_clips(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1)] = 20,
    search: Optional[str] = None,
    favorite: bool = False,
) -> Page[ClipResponse]:
    """Paginated clips: pinned first, then most recently copied."""
    page_size = min(page_size, settings.max_page_size)
    clips, total = await service.list_clips(
        session,
        user_id,
        page=page,
        page_size=page_size,
        search=search,
        favorites_only=favorite,
    )
    return Page[ClipResponse](
        data=[ClipResponse.model_validate(c) for c in clips],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.post("", response_model=ClipResponse, status_code=status.HTTP_201_CREATED)
async def create_clip(
    body: ClipCreate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipResponse:
    clip = await service.create_clip(session, user_id, body)
    return ClipResponse.model_validate(clip)


@router.delete("", response_model=DeletedCount)
async def delete_all_clips(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> DeletedCount:
    """Delete every clip of the current user."""
    return DeletedCount(deleted=await service.delete_all_clips(session, user_id))


@router.post("/sync", response_model=ClipBatchResponse)
async def sync_clips(
    body: ClipBatchRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipBatchResponse:
    """Older clients' batch upload: like /api/sync/push with copiedAt set to now."""
    items = [PushClip(content=c.content, device_name=c.device_name, tags=c.tags) for c in body.clips]
    outcome = await push(session, user_id, body.device_id, items)
    return ClipBatchResponse(synced=outcome.synced)


@router.get("/{clip_id}", response_model=ClipResponse)
async def get_clip(
    clip_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipResponse:
    return ClipResponse.model_validate(await service.get_clip(session, user_id, clip_id))


@router.put("/{clip_id}", response_model=ClipResponse)
async def update_clip(
    clip_id: str,
    body: ClipUpdate,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipResponse:
    """Edit content, tags or flags. The preview keeps its creation-time value."""
    return ClipResponse.model_validate(await service.update_clip(session, user_id, clip_id, body))


@router.put("/{clip_id}/favorite", response_model=ClipResponse)
async def toggle_favorite(
    clip_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipResponse:
    return ClipResponse.model_validate(await service.toggle_favorite(session, user_id, clip_id))


@router.put("/{clip_id}/pin", response_model=ClipResponse)
async def toggle_pin(
    clip_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> ClipResponse:
    return ClipResponse.model_validate(await service.toggle_pin(session, user_id, clip_id))


@router.delete("/{clip_id}")
async def delete_clip(
    clip_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await service.delete_clip(session, user_id, clip_id)
    return {"detail": "Clip deleted"}
