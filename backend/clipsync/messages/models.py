"""Synced message model (SMS forwarded from the phone) and schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.session import Base
from clipsync.db.types import UTCDateTime, new_id
from clipsync.schemas import ApiModel
from clipsync.timeutil import is_zero_time, utcnow


class SyncedMessage(Base):
    """A message received on a device. Immutable once stored."""

    __tablename__ = "synced_messages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[str] = mapped_column(String(255), default="", nullable=False)  # number or contact name
    address: Mapped[str] = mapped_column(String(255), default="", index=True, nullable=False)
    received_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True, nullable=False)
    device_id: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, index=True, nullable=False)


class MessageItem(ApiModel):
    body: str = Field(min_length=1)
    sender: str = ""
    address: str = ""
    received_at: Optional[datetime] = None

    @field_validator("received_at")
    @classmethod
    def _zero_means_unset(cls, v: Optional[datetime]) -> Optional[datetime]:
        return None if is_zero_time(v) else v


class MessagePushRequest(ApiModel):
    device_id: str = Field(min_length=1)
    messages: List[MessageItem]


class MessagePushResponse(ApiModel):
    synced: int
    skipped: List[int] = Field(default_factory=list)
    message: str = "Messages synced successfully"


class MessageResponse(ApiModel):
    id: str
    user_id: str
    body: str
    sender: str
    address: str
    received_at: datetime
    device_id: str
    created_at: datetime


class MessagesSinceResponse(ApiModel):
    messages: List[MessageResponse]
