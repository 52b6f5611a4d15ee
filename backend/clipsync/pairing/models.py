"""Pairing code SQLAlchemy model and Pydantic schemas."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.session import Base
from clipsync.db.types import UTCDateTime, new_id
from clipsync.schemas import ApiModel
from clipsync.timeutil import utcnow


class PairingCode(Base):
    """One-time code linking a new device to the issuing user. Stored upper-case."""

    __tablename__ = "pairing_codes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    code: Mapped[str] = mapped_column(String(6), unique=True, index=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, index=True, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False, index=True, nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) > self.expires_at


class PairingCodeResponse(ApiModel):
    """Freshly issued code, shown as text and as QR of deep_link.

    qr_data is the same link under the name desktop clients read.
    """

    code: str
    expires_at: datetime
    deep_link: str
    qr_data: str


class PairingVerifyRequest(ApiModel):
    code: str


class PairingVerifyResponse(ApiModel):
    """Bearer credential for the newly paired device."""

    token: str
    user_id: str
    token_type: str = "bearer"
    expires_in: int  # seconds
    message: str = "Pairing successful"
