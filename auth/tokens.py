"""
JWT creation and verification.

Access and refresh tokens are HS256-signed JWTs carrying the user id, a
``type`` claim (``access`` / ``refresh``) and a random ``jti`` so two
tokens issued in the same second never collide.  The secret and
lifetimes come from the injected ``Settings``.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from auth.errors import InvalidToken
from config.settings import Settings

ACCESS = "access"
REFRESH = "refresh"


def _encode(user_id: Any, kind: str, lifetime: timedelta, settings: Settings) -> str:
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "id": str(user_id),
        "type": kind,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(
    user_id: Any,
    settings: Settings,
    *,
    hours: Optional[int] = None,
) -> str:
    """Sign an access token; defaults to ``access_token_hours``."""
    lifetime = timedelta(hours=hours if hours is not None else settings.access_token_hours)
    return _encode(user_id, ACCESS, lifetime, settings)


def create_refresh_token(user_id: Any, settings: Settings) -> str:
    return _encode(user_id, REFRESH, timedelta(days=settings.refresh_token_days), settings)


def decode_token(token: str, settings: Settings, *, expected_type: str = ACCESS) -> str:
    """
    Verify ``token`` and return the user id it was issued for.

    Raises ``InvalidToken`` on bad signature, expiry, or a token of the
    wrong type (a refresh token presented as an access token, etc.).
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "id", "type"]},
        )
    except jwt.ExpiredSignatureError:
        raise InvalidToken("Token expired")
    except jwt.InvalidTokenError:
        raise InvalidToken("Invalid token")

    if payload["type"] != expected_type:
        raise InvalidToken("Invalid token type")
    return payload["id"]
