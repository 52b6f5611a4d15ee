"""Auth routes. Login and signup belong to the identity provider; only identity echo lives here."""

from typing import Annotated

from fastapi import APIRouter, Depends

from clipsync.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.get("/me")
async def me(user_id: Annotated[str, Depends(get_current_user_id)]) -> dict:
    """Return the id the bearer token resolves to."""
    return {"id": user_id}
