"""FastAPI dependencies for auth."""

import logging
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clipsync.auth.jwt import get_user_id_from_token
from clipsync.config import Settings, get_settings

security = HTTPBearer(auto_error=False)
log = logging.getLogger(__name__)


async def get_current_user_id(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> str:
    """
    Resolve Bearer token to the caller's user id; raise 401 if invalid or missing.
    The id is trusted as-is: users live in the external identity provider.
    """
    if not credentials:
        log.debug("Request missing Bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_id = get_user_id_from_token(credentials.credentials, settings)
    if not user_id:
        log.debug("Invalid or expired bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id
