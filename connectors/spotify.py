"""
SpotifyConnector — OAuth2 authorization-code flow and Web API reads.

Token requests authenticate with HTTP Basic (client_id:client_secret),
as Spotify requires for confidential clients.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List
from urllib.parse import urlencode

import httpx

from config.settings import Settings
from connectors.base import BaseConnector

logger = logging.getLogger(__name__)


class SpotifyConnector(BaseConnector):
    """OAuth2 connector for Spotify."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http = http_client

    @property
    def scopes(self) -> List[str]:
        return self._settings.spotify_scopes.split()

    def is_configured(self) -> bool:
        return bool(self._settings.spotify_client_id and self._settings.spotify_client_secret)

    def _basic_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(
            self._settings.spotify_client_id,
            self._settings.spotify_client_secret,
        )

    def _api(self, path: str) -> str:
        return f"{self._settings.spotify_api_base.rstrip('/')}/{path.lstrip('/')}"

    def get_auth_url(self, state: str) -> str:
        params = {
            "response_type": "code",
            "client_id": self._settings.spotify_client_id,
            "scope": " ".join(self.scopes),
            "redirect_uri": self._settings.redirect_uri,
            "state": state,
        }
        return f"{self._settings.spotify_auth_url}?{urlencode(params)}"

    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """Exchange auth code for tokens, then fetch the Spotify user id."""
        # 1. Exchange code for tokens
        token_resp = await self._http.post(
            self._settings.spotify_token_url,
            data={
                "code": code,
                "redirect_uri": self._settings.redirect_uri,
                "grant_type": "authorization_code",
            },
            auth=self._basic_auth(),
        )
        token_resp.raise_for_status()
        token_data = token_resp.json()

        if "error" in token_data:
            raise ValueError(
                f"Spotify OAuth error: {token_data.get('error_description', token_data['error'])}"
            )

        # 2. Fetch user profile
        profile = await self.get_profile(token_data["access_token"])
        account_id = profile.get("id")
        if not account_id:
            raise ValueError("Spotify profile response has no 'id'")

        return {
            "access_token": token_data["access_token"],
            "refresh_token": token_data.get("refresh_token"),
            "account_id": str(account_id),
        }

    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        resp = await self._http.post(
            self._settings.spotify_token_url,
            data={
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
            },
            auth=self._basic_auth(),
        )
        resp.raise_for_status()
        data = resp.json()

        if "error" in data:
            raise ValueError(
                f"Spotify token refresh error: {data.get('error_description', data['error'])}"
            )

        return {
            "access_token": data["access_token"],
            "refresh_token": data.get("refresh_token"),
        }

    async def get_profile(self, access_token: str) -> Dict[str, Any]:
        resp = await self._http.get(
            self._api("/me"),
            headers={"Authorization": f"Bearer {access_token}"},
        )
        resp.raise_for_status()
        return resp.json()

    async def get_top_artist_names(self, access_token: str) -> List[str]:
        """Names of the user's top artists, in the order Spotify ranks them."""
        resp = await self._http.get(
            self._api("/me/top/artists"),
            headers={"Authorization": f"Bearer {access_token}"},
        )
        resp.raise_for_status()
        return [artist["name"] for artist in resp.json()["items"]]
