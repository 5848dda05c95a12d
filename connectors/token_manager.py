"""
Token manager — store / look up / refresh per-user Spotify tokens.

This is the single interface routes use to touch stored credentials;
encryption at rest is applied here and nowhere else.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from connectors.base import BaseConnector
from connectors.encryption import TokenCipher
from database.helpers import get_spotify_user, upsert_spotify_user

logger = logging.getLogger(__name__)


class MissingRefreshTokenError(Exception):
    """The stored credential has no refresh token to trade in."""


async def store_credentials(
    session: AsyncSession,
    cipher: TokenCipher,
    token_data: Dict[str, Any],
) -> str:
    """
    Upsert the credential row for ``token_data["account_id"]``.

    Parameters
    ----------
    token_data : dict
        Output from ``connector.handle_callback()``.

    Returns
    -------
    The Spotify user id the row is keyed by.
    """
    spotify_id = token_data["account_id"]
    await upsert_spotify_user(
        session,
        spotify_id,
        access_token=cipher.encrypt(token_data["access_token"]),
        refresh_token=cipher.encrypt(token_data.get("refresh_token")),
    )
    await session.commit()
    logger.info("Stored Spotify credentials for user %s", spotify_id)
    return spotify_id


async def get_access_token(
    session: AsyncSession,
    cipher: TokenCipher,
    spotify_id: str,
) -> Optional[str]:
    """Return the stored access token as-is, or None if the user is unknown."""
    user = await get_spotify_user(session, spotify_id)
    if user is None:
        return None
    return cipher.decrypt(user.access_token)


async def refresh_stored_token(
    session: AsyncSession,
    cipher: TokenCipher,
    connector: BaseConnector,
    spotify_id: str,
) -> Optional[str]:
    """
    Trade the stored refresh token for a new access token and persist it.

    Returns the new access token, or None if the user is unknown.
    Raises ``MissingRefreshTokenError`` when there is nothing to refresh
    with; provider errors propagate to the caller.
    """
    user = await get_spotify_user(session, spotify_id)
    if user is None:
        return None
    refresh_token = cipher.decrypt(user.refresh_token)
    if not refresh_token:
        raise MissingRefreshTokenError(spotify_id)

    refreshed = await connector.refresh_access_token(refresh_token)
    await upsert_spotify_user(
        session,
        spotify_id,
        access_token=cipher.encrypt(refreshed["access_token"]),
        refresh_token=cipher.encrypt(refreshed.get("refresh_token")),
    )
    await session.commit()
    logger.info("Refreshed Spotify token for user %s", spotify_id)
    return refreshed["access_token"]
