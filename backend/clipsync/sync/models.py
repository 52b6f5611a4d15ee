"""Sync session model and sync API schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator
from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.clips.models import ClipResponse
from clipsync.db.session import Base
from clipsync.db.types import UTCDateTime, new_id
from clipsync.schemas import ApiModel
from clipsync.timeutil import is_zero_time, utcnow


class SyncSession(Base):
    """Last sync watermark of one device of one user."""

    __tablename__ = "sync_sessions"
    __table_args__ = (UniqueConstraint("user_id", "device_id", name="uq_sync_sessions_user_device"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    device_id: Mapped[str] = mapped_column(String(255), nullable=False)
    last_sync: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)


class PullRequest(ApiModel):
    device_id: str = Field(min_length=1)
    last_sync: Optional[datetime] = None

    @field_validator("last_sync")
    @classmethod
    def _zero_means_never(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if is_zero_time(v) else v


class PullResponse(ApiModel):
    clips: List[ClipResponse]
    last_sync: datetime


class PushClip(ApiModel):
    """One clip in a push batch."""

    content: str = Field(min_length=1)
    device_name: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    copied_at: Optional[datetime] = None

    @field_validator("copied_at")
    @classmethod
    def _zero_means_unset(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if is_zero_time(v) else v


class PushRequest(ApiModel):
    device_id: str = Field(min_length=1)
    clips: List[PushClip]


class PushResponse(ApiModel):
    """synced counts stored items; skipped holds indexes of items that failed to store."""

    synced: int
    skipped: List[int] = Field(default_factory=list)
    last_sync: datetime


class SyncStatusResponse(ApiModel):
    last_sync: Optional[datetime] = None
    total_clips: int
    unsynced_clips: int
    device_id: Optional[str] = None
