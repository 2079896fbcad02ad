"""
GoogleConnector — OAuth2 web flow for "Sign in with Google".

Builds the consent URL, then on callback exchanges the code for an
access token and reads the userinfo endpoint.
"""

from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import urlencode

import httpx

from config.settings import Settings
from connectors.base import BaseConnector, ProviderProfile

logger = logging.getLogger(__name__)

# Google OAuth2 endpoints
_GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
_GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
_GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v2/userinfo"


class GoogleConnector(BaseConnector):
    """OAuth2 login connector for Google accounts."""

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def provider_name(self) -> str:
        return "google"

    @property
    def scopes(self) -> List[str]:
        return [
            "https://www.googleapis.com/auth/userinfo.email",
            "https://www.googleapis.com/auth/userinfo.profile",
        ]

    def is_configured(self) -> bool:
        return bool(self._settings.google_client_id and self._settings.google_client_secret)

    def get_auth_url(self) -> str:
        params = {
            "client_id": self._settings.google_client_id,
            "redirect_uri": self._settings.google_redirect_uri,
            "scope": " ".join(self.scopes),
            "response_type": "code",
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{_GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def fetch_profile(self, code: str) -> ProviderProfile:
        """Exchange ``code`` for a token, then fetch the userinfo profile."""
        async with httpx.AsyncClient(transport=self._transport) as client:
            # 1. Exchange code for tokens
            token_resp = await client.post(
                _GOOGLE_TOKEN_URL,
                data={
                    "code": code,
                    "client_id": self._settings.google_client_id,
                    "client_secret": self._settings.google_client_secret,
                    "redirect_uri": self._settings.google_redirect_uri,
                    "grant_type": "authorization_code",
                },
            )
            token_resp.raise_for_status()
            access_token = token_resp.json()["access_token"]

            # 2. Fetch the profile
            headers = {"Authorization": f"Bearer {access_token}"}
            user_resp = await client.get(_GOOGLE_USERINFO_URL, headers=headers)
            user_resp.raise_for_status()
            user_info = user_resp.json()

        logger.debug("Google profile fetched for %s", user_info.get("email"))
        return ProviderProfile(
            id=str(user_info["id"]),
            email=user_info["email"],
            name=user_info.get("name") or "",
            avatar=user_info.get("picture") or "",
            email_verified=bool(user_info.get("verified_email", False)),
        )
