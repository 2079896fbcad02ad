"""
BaseConnector — abstract interface for OAuth2 login providers.

A provider subclasses this and implements the consent-URL builder and
the code → profile exchange.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel


class ProviderProfile(BaseModel):
    """Identity returned by a provider after a successful code exchange."""

    id: str
    email: str
    name: str = ""
    avatar: str = ""
    email_verified: bool = False


class BaseConnector(ABC):
    """Abstract base for OAuth2 login connectors."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Unique slug: 'google', …"""
        ...

    @property
    @abstractmethod
    def scopes(self) -> List[str]:
        """OAuth scopes required by this connector."""
        ...

    @abstractmethod
    def get_auth_url(self) -> str:
        """
        Build the provider's OAuth2 authorization URL.

        Returns
        -------
        The full URL to redirect the browser to.
        """
        ...

    @abstractmethod
    async def fetch_profile(self, code: str) -> ProviderProfile:
        """
        Exchange the authorization code for an access token and use it to
        fetch the user's profile.

        Parameters
        ----------
        code : str
            Authorization code from the OAuth redirect.
        """
        ...

    def is_configured(self) -> bool:
        """True if the connector has its client id / secret."""
        return True
