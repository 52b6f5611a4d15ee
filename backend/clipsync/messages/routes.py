"""Message routes: push from phone, list, poll since, delete."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.dependencies import get_current_user_id
from clipsync.config import Settings, get_settings
from clipsync.db.session import get_db
from clipsync.errors import FormatError
from clipsync.messages import service
from clipsync.messages.models import (
    MessagePushRequest,
    MessagePushResponse,
    MessageResponse,
    MessagesSinceResponse,
)
from clipsync.schemas import DeletedCount, Page, total_pages
from clipsync.timeutil import parse_rfc3339

router = APIRouter(prefix="/api/messages", tags=["messages"])
log = logging.getLogger(__name__)


@router.get("", response_model=Page[MessageResponse])
async def list_messages(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(alias="pageSize", ge=1)] = 50,
    since: Optional[str] = None,
) -> Page[MessageResponse]:
    """Paginated messages, newest received first. pageSize is capped at max_page_size."""
    since_at = parse_rfc3339(since) if since else None
    page_size = min(page_size, settings.max_page_size)
    messages, total = await service.list_messages(
        session, user_id, page=page, page_size=page_size, since=since_at
    )
    return Page[MessageResponse](
        data=[MessageResponse.model_validate(m) for m in messages],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages(total, page_size),
    )


@router.get("/since", response_model=MessagesSinceResponse)
async def messages_since(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
    since: Optional[str] = None,
) -> MessagesSinceResponse:
    """Messages stored after since (RFC 3339), oldest first. Used by desktop notification polling."""
    if not since:
        raise FormatError("since query param required (RFC3339)")
    since_at = parse_rfc3339(since)
    messages = await service.list_since(session, user_id, since_at)
    return MessagesSinceResponse(messages=[MessageResponse.model_validate(m) for m in messages])


@router.post("", response_model=MessagePushResponse)
async def push_messages(
    body: MessagePushRequest,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> MessagePushResponse:
    """Store a batch of messages from the phone."""
    synced, skipped = await service.push_messages(session, user_id, body.device_id, body.messages)
    return MessagePushResponse(synced=synced, skipped=skipped)


@router.delete("", response_model=DeletedCount)
async def clear_messages(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> DeletedCount:
    return DeletedCount(deleted=await service.clear_messages(session, user_id))


@router.delete("/{message_id}")
async def delete_message(
    message_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await service.delete_message(session, user_id, message_id)
    return {"detail": "Message deleted"}
