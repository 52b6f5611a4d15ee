"""Vault routes: salt for client-side key derivation and encrypted clip blobs."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.dependencies import get_current_user_id
from clipsync.db.session import get_db
from clipsync.vault import service
from clipsync.vault.models import (
    SecureClipResponse,
    SecureClipWrite,
    VaultResponse,
    VaultStatusResponse,
)

router = APIRouter(prefix="/api/secure", tags=["secure"])


@router.get("/vault", response_model=VaultStatusResponse)
async def vault_status(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> VaultStatusResponse:
    vault = await service.get_vault(session, user_id)
    if vault is None:
        return VaultStatusResponse(exists=False)
    return VaultStatusResponse(exists=True, salt=vault.salt, created_at=vault.created_at)


@router.post("/vault", response_model=VaultResponse, status_code=status.HTTP_201_CREATED)
async def create_vault(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> VaultResponse:
    """Create the vault once; 409 if it already exists."""
    vault = await service.create_vault(session, user_id)
    return VaultResponse(salt=vault.salt, created_at=vault.created_at)


@router.get("/clips", response_model=List[SecureClipResponse])
async def list_secure_clips(
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> List[SecureClipResponse]:
    return [SecureClipResponse.model_validate(c) for c in await service.list_secure_clips(session, user_id)]


@router.post("/clips", response_model=SecureClipResponse, status_code=status.HTTP_201_CREATED)
async def create_secure_clip(
    body: SecureClipWrite,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> SecureClipResponse:
    """Store a clip encrypted by the client. Requires a vault (403 otherwise)."""
    return SecureClipResponse.model_validate(await service.create_secure_clip(session, user_id, body))


@router.put("/clips/{clip_id}", response_model=SecureClipResponse)
async def update_secure_clip(
    clip_id: str,
    body: SecureClipWrite,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> SecureClipResponse:
    return SecureClipResponse.model_validate(
        await service.update_secure_clip(session, user_id, clip_id, body)
    )


@router.delete("/clips/{clip_id}")
async def delete_secure_clip(
    clip_id: str,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> dict:
    await service.delete_secure_clip(session, user_id, clip_id)
    return {"detail": "Deleted"}
