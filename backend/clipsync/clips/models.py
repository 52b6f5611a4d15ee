"""Clip SQLAlchemy model and Pydantic schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field
from sqlalchemy import JSON, Boolean, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.session import Base
from clipsync.db.types import UTCDateTime, new_id
from clipsync.schemas import ApiModel
from clipsync.timeutil import utcnow

PREVIEW_LENGTH = 200


class Clip(Base):
    """A clipboard entry. content_preview is fixed at creation and never recomputed."""

    __tablename__ = "clips"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_preview: Mapped[str] = mapped_column(String(PREVIEW_LENGTH), nullable=False, default="")
    copied_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, index=True, nullable=False)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    device_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    synced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, index=True, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime, default=utcnow, onupdate=utcnow, index=True, nullable=False
    )


# Pydantic schemas for API
class ClipCreate(ApiModel):
    """Payload for creating a single clip (also one item of a sync push)."""

    content: str = Field(min_length=1)
    device_name: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class ClipUpdate(ApiModel):
    """Partial update: only fields that are set are applied. Preview is not touched."""

    content: Optional[str] = Field(default=None, min_length=1)
    is_favorite: Optional[bool] = None
    is_pinned: Optional[bool] = None
    tags: Optional[List[str]] = None


class ClipResponse(ApiModel):
    id: str
    user_id: str
    content: str
    content_preview: str
    copied_at: datetime
    is_favorite: bool
    is_pinned: bool
    tags: List[str]
    device_name: Optional[str] = None
    synced: bool
    created_at: datetime
    updated_at: datetime


class ClipBatchRequest(ApiModel):
    """Legacy batch upload body (POST /api/clips/sync)."""

    device_id: str = Field(min_length=1)
    clips: List[ClipCreate]


class ClipBatchResponse(ApiModel):
    synced: int
    conflicts: List[ClipResponse] = Field(default_factory=list)
