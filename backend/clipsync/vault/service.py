"""Vault service: salt issuance and encrypted blob storage. No decryption happens here."""

import base64
import logging
import secrets
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.errors import ConflictError, NotFoundError, VaultMissingError
from clipsync.timeutil import utcnow
from clipsync.vault.models import SecureClip, SecureClipWrite, UserVault

log = logging.getLogger(__name__)

SALT_BYTES = 32


async def get_vault(session: AsyncSession, user_id: str) -> Optional[UserVault]:
    """Return the user's vault or None."""
    result = await session.execute(select(UserVault).where(UserVault.user_id == user_id))
    return result.scalar_one_or_none()


async def create_vault(session: AsyncSession, user_id: str) -> UserVault:
    """Create the user's vault with a random salt. ConflictError if one exists."""
    if await get_vault(session, user_id):
        raise ConflictError("Vault already exists")
    vault = UserVault(
        user_id=user_id,
        salt=base64.b64encode(secrets.token_bytes(SALT_BYTES)).decode("ascii"),
    )
    session.add(vault)
    try:
        await session.commit()
    except IntegrityError as e:
        # created by a concurrent request after the check above
        await session.rollback()
        raise ConflictError("Vault already exists") from e
    log.info("Vault created user=%s", user_id)
    return vault


async def create_secure_clip(session: AsyncSession, user_id: str, payload: SecureClipWrite) -> SecureClip:
    if not await get_vault(session, user_id):
        raise VaultMissingError()
    clip = SecureClip(user_id=user_id, encrypted_payload=payload.encrypted_payload, nonce=payload.nonce)
    session.add(clip)
    await session.commit()
    log.info("Secure clip stored user=%s id=%s", user_id, clip.id)
    return clip


async def list_secure_clips(session: AsyncSession, user_id: str) -> List[SecureClip]:
    result = await session.execute(
        select(SecureClip).where(SecureClip.user_id == user_id).order_by(SecureClip.created_at.desc())
    )
    return list(result.scalars().all())


async def update_secure_clip(
    session: AsyncSession, user_id: str, clip_id: str, payload: SecureClipWrite
) -> SecureClip:
    result = await session.execute(
        select(SecureClip).where(SecureClip.id == clip_id, SecureClip.user_id == user_id)
    )
    clip = result.scalar_one_or_none()
    if clip is None:
        raise NotFoundError("Secure clip not found")
    clip.encrypted_payload = payload.encrypted_payload
    clip.nonce = payload.nonce
    clip.updated_at = utcnow()
    await session.commit()
    return clip


async def delete_secure_clip(session: AsyncSession, user_id: str, clip_id: str) -> None:
    result = await session.execute(
        delete(SecureClip)
        .where(SecureClip.id == clip_id, SecureClip.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        raise NotFoundError("Secure clip not found")
    await session.commit()
    log.info("Secure clip deleted user=%s id=%s", user_id, clip_id)
