"""
REST API routes — token lookup / refresh, top-artist prompt, early access.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    db_session,
    get_cipher,
    get_prompt_generator,
    get_settings,
    get_spotify,
)
from api.errors import INTERNAL_ERROR, AppError
from config.settings import Settings
from connectors.encryption import TokenCipher
from connectors.spotify import SpotifyConnector
from connectors.token_manager import (
    MissingRefreshTokenError,
    get_access_token,
    refresh_stored_token,
)
from core.prompt_generator import PromptGenerator, pick_top_artists
from database.helpers import WaitlistOutcome, register_early_access
from utils.schemas import (
    AccessTokenResponse,
    EarlyAccessRequest,
    EarlyAccessResponse,
    TopArtistsPromptResponse,
    UserIdRequest,
)
from utils.validators import is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root() -> str:
    return "Hello World!"


async def _lookup_token(session: AsyncSession, cipher: TokenCipher, user_id: str) -> str:
    try:
        token = await get_access_token(session, cipher, user_id)
    except SQLAlchemyError as exc:
        logger.error("Error fetching access token: %s", exc)
        raise AppError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR) from exc
    if token is None:
        raise AppError(status.HTTP_404_NOT_FOUND, "User not found")
    return token


@router.post("/get_access_token", response_model=AccessTokenResponse)
async def get_access_token_route(
    body: UserIdRequest,
    session: AsyncSession = Depends(db_session),
    cipher: TokenCipher = Depends(get_cipher),
) -> Dict[str, Any]:
    """Return the stored access token for a Spotify user id, as stored."""
    if not body.user_id:
        raise AppError(status.HTTP_400_BAD_REQUEST, "User ID is required")
    return {"access_token": await _lookup_token(session, cipher, body.user_id)}


@router.post("/refresh_access_token", response_model=AccessTokenResponse)
async def refresh_access_token_route(
    body: UserIdRequest,
    session: AsyncSession = Depends(db_session),
    cipher: TokenCipher = Depends(get_cipher),
    spotify: SpotifyConnector = Depends(get_spotify),
) -> Dict[str, Any]:
    """Trade the stored refresh token for a new access token."""
    if not body.user_id:
        raise AppError(status.HTTP_400_BAD_REQUEST, "User ID is required")
    try:
        token = await refresh_stored_token(session, cipher, spotify, body.user_id)
    except MissingRefreshTokenError:
        raise AppError(status.HTTP_409_CONFLICT, "No refresh token stored for user")
    except Exception as exc:
        logger.error("Error refreshing access token: %s", exc)
        await session.rollback()
        raise AppError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR) from exc
    if token is None:
        raise AppError(status.HTTP_404_NOT_FOUND, "User not found")
    return {"access_token": token}


@router.get("/get_user_top_tracks", response_model=TopArtistsPromptResponse)
async def get_user_top_tracks(
    user_id: Optional[str] = Query(None),
    access_token: Optional[str] = Query(None),
    session: AsyncSession = Depends(db_session),
    cipher: TokenCipher = Depends(get_cipher),
    spotify: SpotifyConnector = Depends(get_spotify),
    generator: PromptGenerator = Depends(get_prompt_generator),
) -> Dict[str, Any]:
    """
    Fetch the user's top artists and turn the first two into a
    text-to-image prompt.

    Accepts either ``user_id`` (token looked up from the store) or a raw
    ``access_token``.
    """
    if not access_token:
        if not user_id:
            raise AppError(status.HTTP_400_BAD_REQUEST, "User ID is required")
        access_token = await _lookup_token(session, cipher, user_id)

    try:
        artists = pick_top_artists(await spotify.get_top_artist_names(access_token))
        logger.info("Top artists: %s", artists)
        prompt = await generator.generate(artists)
    except Exception as exc:
        logger.error("Error fetching user top tracks: %s", exc)
        raise AppError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR) from exc

    return {"artists": artists, "prompt": prompt}


@router.post(
    "/earlyaccess",
    response_model=EarlyAccessResponse,
    status_code=status.HTTP_201_CREATED,
)
async def early_access(
    body: EarlyAccessRequest,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Join the early-access waitlist."""
    email = (body.email or "").strip().lower()
    if not email:
        raise AppError(status.HTTP_400_BAD_REQUEST, "Email is required")
    if not is_valid_email(email):
        raise AppError(status.HTTP_400_BAD_REQUEST, "Invalid email format")

    try:
        outcome, entry = await register_early_access(
            session, email, settings.waitlist_capacity,
        )
        await session.commit()
    except SQLAlchemyError as exc:
        logger.error("Error registering early access: %s", exc)
        await session.rollback()
        raise AppError(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR) from exc

    if outcome is WaitlistOutcome.FULL:
        raise AppError(status.HTTP_403_FORBIDDEN, "Early access list is full")
    if outcome is WaitlistOutcome.DUPLICATE:
        raise AppError(status.HTTP_409_CONFLICT, "Email already registered")

    logger.info("Early access registration: %s", email)
    return entry
