"""
BaseConnector — abstract interface for OAuth2 authorization-code providers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class BaseConnector(ABC):
    """Abstract base for OAuth2 connectors."""

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes requested at login."""
        ...

    @abstractmethod
    def get_auth_url(self, state: str) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Parameters
        ----------
        state : str
            Anti-forgery token echoed back on the callback.

        Returns
        -------
        The full URL to redirect the browser to.
        """
        ...

    @abstractmethod
    async def handle_callback(self, code: str) -> Dict[str, Any]:
        """
        Exchange the authorization code for tokens and resolve the account.

        Returns
        -------
        dict with keys:
            access_token, refresh_token, account_id
        """
        ...

    @abstractmethod
    async def refresh_access_token(self, refresh_token: str) -> Dict[str, Any]:
        """
        Trade a refresh token for a new access token.

        Returns
        -------
        dict with keys: access_token, (optional) refresh_token
        """
        ...

    def is_configured(self) -> bool:
        """Return True if client credentials are present."""
        return True
