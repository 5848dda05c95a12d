"""
Spotify OAuth routes — login redirect and callback.

Errors in this flow are reported to the frontend through redirect query
markers (``error=state_mismatch`` / ``error=authentication_error``), never
through an HTTP error status.
"""

from __future__ import annotations

import hmac
import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import db_session, get_cipher, get_settings, get_spotify
from config.settings import Settings
from connectors.encryption import TokenCipher
from connectors.spotify import SpotifyConnector
from connectors.token_manager import store_credentials
from utils.validators import generate_random_string

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

SESSION_STATE_KEY = "oauth_state"


# ── Redirect helpers ───────────────────────────────────────────────────


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


def _state_mismatch(settings: Settings) -> RedirectResponse:
    return _redirect(f"{settings.frontend_base}/#" + urlencode({"error": "state_mismatch"}))


def _auth_error(settings: Settings) -> RedirectResponse:
    return _redirect(f"{settings.frontend_base}/home?" + urlencode({"error": "authentication_error"}))


def _auth_success(settings: Settings, spotify_id: str) -> RedirectResponse:
    query = urlencode({"user_id": spotify_id, "auth_success": "true"})
    return _redirect(f"{settings.frontend_base}/home?{query}")


def _state_matches(received: Optional[str], expected: Optional[str]) -> bool:
    if not received or not expected:
        return False
    return hmac.compare_digest(received.encode(), expected.encode())


# ── Routes ─────────────────────────────────────────────────────────────


@router.get("/login")
async def login(
    request: Request,
    settings: Settings = Depends(get_settings),
    spotify: SpotifyConnector = Depends(get_spotify),
) -> RedirectResponse:
    """Start the authorization-code flow with a fresh state token."""
    state = generate_random_string(settings.state_length)
    request.session[SESSION_STATE_KEY] = state
    return _redirect(spotify.get_auth_url(state))


@router.get("/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    settings: Settings = Depends(get_settings),
    spotify: SpotifyConnector = Depends(get_spotify),
    cipher: TokenCipher = Depends(get_cipher),
    session: AsyncSession = Depends(db_session),
) -> RedirectResponse:
    """
    Spotify redirects here after consent.

    Verifies state, exchanges the code, stores the tokens and sends the
    browser back to the frontend with the Spotify user id.
    """
    # 1. Verify state (single use)
    expected = request.session.pop(SESSION_STATE_KEY, None)
    if not _state_matches(state, expected):
        logger.warning("OAuth state mismatch (received=%s)", bool(state))
        return _state_mismatch(settings)

    if error or not code:
        logger.error("Spotify authorization failed: %s", error or "missing code")
        return _auth_error(settings)

    # 2. Exchange code for tokens + 3. store them
    try:
        token_data = await spotify.handle_callback(code)
        spotify_id = await store_credentials(session, cipher, token_data)
    except Exception as exc:
        logger.error("Error fetching access token: %s", exc)
        await session.rollback()
        return _auth_error(settings)

    logger.info("OAuth connected: spotify_id=%s", spotify_id)
    return _auth_success(settings, spotify_id)
