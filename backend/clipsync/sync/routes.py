"""Sync routes: status, pull, push."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.dependencies import get_current_user_id
from clipsync.clips.models import ClipResponse
from clipsync.db.session import get_db
from clipsync.limiter import limiter
from clipsync.sync import service
from clipsync.sync.models import (
    PullRequest,
    PullResponse,
    PushRequest,
    PushResponse,
    SyncStatusResponse,
)

router = APIRouter(prefix="/api/sync", tags=["sync"])
log = logging.getLogger(__name__)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
    device_id: Annotated[Optional[str], Query(alias="deviceId")] = None,
) -> SyncStatusResponse:
    """Last sync of the device and clip counters of the user."""
    status = await service.get_status(session, user_id, device_id)
    return SyncStatusResponse(
        last_sync=status.last_sync,
        total_clips=status.total_clips,
        unsynced_clips=status.unsynced_clips,
        device_id=device_id,
    )


@router.post("/pull", response_model=PullResponse)
@limiter.limit("120/minute")
async def sync_pull(
    request: Request,
    body: PullRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> PullResponse:
    """Clips changed since lastSync (all when absent). Store the returned lastSync for the next pull."""
    clips, now = await service.pull(session, user_id, body.device_id, body.last_sync)
    return PullResponse(clips=[ClipResponse.model_validate(c) for c in clips], last_sync=now)


@router.post("/push", response_model=PushResponse)
@limiter.limit("120/minute")
async def sync_push(
    request: Request,
    body: PushRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> PushResponse:
    """Store a batch of clips from the device. Always additive."""
    outcome = await service.push(session, user_id, body.device_id, body.clips)
    return PushResponse(synced=outcome.synced, skipped=outcome.skipped, last_sync=outcome.last_sync)
