"""Pairing service: issue one-time codes, redeem them for a bearer token, purge expired ones."""

import logging
import secrets
from datetime import timedelta

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.jwt import issue_token
from clipsync.config import Settings
from clipsync.errors import (
    ExpiredError,
    FormatError,
    NotFoundError,
    StorageUnavailableError,
    UsedError,
)
from clipsync.pairing.models import PairingCode
from clipsync.timeutil import utcnow

log = logging.getLogger(__name__)

CODE_LENGTH = 6


def random_code() -> str:
    """Six upper-case hex characters from 3 random bytes."""
    return secrets.token_bytes(3).hex().upper()


def normalize_code(raw: str) -> str:
    """Trim and upper-case user input. Raises FormatError unless exactly 6 characters remain."""
    code = (raw or "").strip().upper()
    if len(code) != CODE_LENGTH:
        raise FormatError("Invalid code format")
    return code


def deep_link(settings: Settings, code: str) -> str:
    """URI the desktop app renders as QR for the mobile app to open."""
    return f"{settings.pairing_deep_link_prefix}{code}"


async def _code_taken(session: AsyncSession, code: str) -> bool:
    result = await session.execute(
        select(PairingCode.id).where(func.upper(PairingCode.code) == code).limit(1)
    )
    return result.first() is not None


async def generate_code(session: AsyncSession, settings: Settings, user_id: str) -> PairingCode:
    """
    Create and commit a new unused code for user_id, valid for pairing_code_ttl_minutes.
    Regenerates on collision with any stored code, at most pairing_code_max_attempts times;
    raises StorageUnavailableError when no free code was found.
    """
    for attempt in range(1, settings.pairing_code_max_attempts + 1):
        code = random_code()
        if await _code_taken(session, code):
            log.debug("Pairing code collision on attempt %d", attempt)
            continue
        pairing = PairingCode(
            code=code,
            user_id=user_id,
            expires_at=utcnow() + timedelta(minutes=settings.pairing_code_ttl_minutes),
            used=False,
        )
        try:
            async with session.begin_nested():
                session.add(pairing)
        except IntegrityError:
            # stored by a concurrent request between the check and the insert
            log.debug("Pairing code insert lost race on attempt %d", attempt)
            continue
        await session.commit()
        log.info("Pairing code issued user=%s expires_at=%s", user_id, pairing.expires_at.isoformat())
        return pairing
    log.error(
        "No free pairing code after %d attempts user=%s",
        settings.pairing_code_max_attempts,
        user_id,
    )
    raise StorageUnavailableError("Could not allocate a pairing code, try again")


async def redeem_code(session: AsyncSession, settings: Settings, raw_code: str) -> tuple[str, str]:
    """
    Redeem a pairing code once. Returns (token, user_id) of the code's owner.
    Raises FormatError, NotFoundError, UsedError (checked before expiry) or ExpiredError.
    """
    code = normalize_code(raw_code)
    result = await session.execute(select(PairingCode).where(func.upper(PairingCode.code) == code))
    pairing = result.scalar_one_or_none()
    if pairing is None:
        log.warning("Pairing verify failed: unknown code")
        raise NotFoundError("Invalid pairing code")
    if pairing.used:
        log.warning("Pairing verify failed: code already used user=%s", pairing.user_id)
        raise UsedError()
    now = utcnow()
    if pairing.is_expired(now):
        log.warning("Pairing verify failed: code expired user=%s", pairing.user_id)
        raise ExpiredError()
    # Conditional update: only one concurrent redeemer can flip used from false to true
    claimed = await session.execute(
        update(PairingCode)
        .where(PairingCode.id == pairing.id, PairingCode.used.is_(False))
        .values(used=True, used_at=now)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        log.warning("Pairing verify lost race: code already used user=%s", pairing.user_id)
        raise UsedError()
    await session.commit()
    token = issue_token(pairing.user_id, settings)
    log.info("Pairing successful user=%s", pairing.user_id)
    return token, pairing.user_id


async def purge_expired_codes(session: AsyncSession) -> int:
    """Delete codes past their expiry. Returns number removed. Caller must commit."""
    result = await session.execute(
        delete(PairingCode)
        .where(PairingCode.expires_at < utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        log.info("Purged %d expired pairing codes", result.rowcount)
    return result.rowcount or 0
