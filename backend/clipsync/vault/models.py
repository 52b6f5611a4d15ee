"""Vault (key-derivation salt) and secure clip models. The server only stores ciphertext."""

from datetime import datetime
from typing import Optional

from pydantic import Field
from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from clipsync.db.session import Base
from clipsync.db.types import UTCDateTime, new_id
from clipsync.schemas import ApiModel
from clipsync.timeutil import utcnow


class UserVault(Base):
    """Per-user salt; clients derive the key from it and a master password that never leaves them."""

    __tablename__ = "user_vaults"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    salt: Mapped[str] = mapped_column(String(88), nullable=False)  # base64
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)


class SecureClip(Base):
    __tablename__ = "secure_clips"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    encrypted_payload: Mapped[str] = mapped_column(Text, nullable=False)  # base64 AES-GCM ciphertext
    nonce: Mapped[str] = mapped_column(String(32), nullable=False)  # base64 96-bit nonce
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)


class VaultStatusResponse(ApiModel):
    exists: bool
    salt: Optional[str] = None
    created_at: Optional[datetime] = None


class VaultResponse(ApiModel):
    salt: str
    created_at: datetime


class SecureClipWrite(ApiModel):
    """Create or replace the ciphertext of a secure clip."""

    encrypted_payload: str = Field(min_length=1)
    nonce: str = Field(min_length=1, max_length=32)


class SecureClipResponse(ApiModel):
    id: str
    user_id: str
    encrypted_payload: str
    nonce: str
    created_at: datetime
    updated_at: datetime
