"""
FastAPI dependencies for authentication.

Provides ``db_session``, the ``AuthService`` factory, and the request
context resolvers ``get_current_user`` (access token) and
``get_refresh_context`` (refresh token) used by protected routes.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from auth.errors import InvalidToken
from auth.service import AuthService
from auth.tokens import ACCESS, REFRESH, decode_token
from config.settings import Settings, get_settings
from connectors.base import BaseConnector
from connectors.google import GoogleConnector
from database.models import User
from database.session import get_db_session
from utils.mailer import Mailer

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class RefreshContext:
    user_id: uuid.UUID
    refresh_token: str


async def db_session(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a DB session for route handlers."""
    yield session


def get_mailer(settings: Settings = Depends(get_settings)) -> Mailer:
    return Mailer(settings)


def get_google_connector(settings: Settings = Depends(get_settings)) -> BaseConnector:
    return GoogleConnector(settings)


def get_auth_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
    mailer: Mailer = Depends(get_mailer),
    google: BaseConnector = Depends(get_google_connector),
) -> AuthService:
    return AuthService(session, settings, mailer, google)


def _bearer_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidToken("Missing Bearer token")
    return credentials.credentials


def _to_uuid(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise InvalidToken("Invalid token")


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Verify the Bearer access token and return its ``User``.

    Only the most recently issued token is accepted; logging out or
    signing in again invalidates older ones.
    """
    token = _bearer_token(credentials)
    user_id = _to_uuid(decode_token(token, settings, expected_type=ACCESS))
    user = await session.get(User, user_id)
    if user is None or user.token != token:
        raise InvalidToken()
    return user


async def get_refresh_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> RefreshContext:
    """Verify a Bearer refresh token; the service checks it is still current."""
    token = _bearer_token(credentials)
    user_id = _to_uuid(decode_token(token, settings, expected_type=REFRESH))
    return RefreshContext(user_id=user_id, refresh_token=token)
