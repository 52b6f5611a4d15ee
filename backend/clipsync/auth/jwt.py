"""Bearer token creation and validation (HS256 JWT carrying the user id)."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from clipsync.config import Settings

USER_ID_CLAIM = "userId"


def issue_token(
    user_id: str,
    settings: Settings,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a bearer JWT for user_id. Expires after token_expire_days unless expires_delta is given."""
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(days=settings.token_expire_days))
    to_encode: dict[str, Any] = {
        USER_ID_CLAIM: user_id,
        "iat": issued_at,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_lifetime_seconds(settings: Settings) -> int:
    """Lifetime of tokens from issue_token, in seconds."""
    return settings.token_expire_days * 24 * 60 * 60


def decode_token(token: str, settings: Settings) -> Optional[dict[str, Any]]:
    """Decode and validate a JWT (signature and exp); return payload or None."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def get_user_id_from_token(token: str, settings: Settings) -> Optional[str]:
    """Return the user id if token is valid and carries one."""
    payload = decode_token(token, settings)
    if not payload:
        return None
    user_id = payload.get(USER_ID_CLAIM)
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id
