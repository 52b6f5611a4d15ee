"""Pairing routes: issue a code on a signed-in device, verify it on the new device."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from clipsync.auth.dependencies import get_current_user_id
from clipsync.auth.jwt import token_lifetime_seconds
from clipsync.config import Settings, get_settings
from clipsync.db.session import get_db
from clipsync.limiter import limiter
from clipsync.pairing.models import (
    PairingCodeResponse,
    PairingVerifyRequest,
    PairingVerifyResponse,
)
from clipsync.pairing.service import deep_link, generate_code, redeem_code

router = APIRouter(prefix="/api/pairing", tags=["pairing"])
log = logging.getLogger(__name__)


@router.get("/code", response_model=PairingCodeResponse)
@limiter.limit("30/minute")
async def get_pairing_code(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    session: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PairingCodeResponse:
    """Issue a 6-character code valid for a few minutes, plus a deep link for QR display."""
    pairing = await generate_code(session, settings, user_id)
    link = deep_link(settings, pairing.code)
    return PairingCodeResponse(
        code=pairing.code,
        expires_at=pairing.expires_at,
        deep_link=link,
        qr_data=link,
    )


@router.post("/verify", response_model=PairingVerifyResponse)
@limiter.limit("10/minute")
async def verify_pairing_code(
    request: Request,
    body: PairingVerifyRequest,
    session: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> PairingVerifyResponse:
    """Redeem a code (case-insensitive, once). No auth: the code is the credential."""
    token, user_id = await redeem_code(session, settings, body.code)
    return PairingVerifyResponse(
        token=token,
        user_id=user_id,
        expires_in=token_lifetime_seconds(settings),
    )
