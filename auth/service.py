"""
AuthService — account lifecycle, profile, password reset and OAuth login.

Every mutation is a single UPDATE/INSERT keyed by id (or by reset code and
expiry), so two requests touching the same user never interleave a
read-then-write.  Expected failures are raised as ``auth.errors``
subclasses; mapping them to HTTP statuses is the transport's job.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from auth.codes import generate_random_code
from auth.errors import (
    InvalidCredentials,
    InvalidResetCode,
    InvalidTheme,
    InvalidToken,
    ProviderNotConfigured,
    UnverifiedEmail,
    UserAlreadyExists,
    UserNotFound,
)
from auth.password import hash_password_async, verify_password_async
from auth.tokens import create_access_token, create_refresh_token
from config.settings import Settings
from connectors.base import BaseConnector
from database.models import CreatedAccount, User
from utils.avatars import avatar_reference, gravatar_url, move_avatar
from utils.mailer import Mailer, MailMessage

logger = logging.getLogger(__name__)

THEMES = ("light", "dark", "violet")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str


class AuthService:
    """Business operations behind the ``/api/users`` routes."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        mailer: Mailer,
        google: BaseConnector,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session = session
        self._settings = settings
        self._mailer = mailer
        self._google = google
        self._clock = clock

    # ── Lookups ─────────────────────────────────────────────────────────

    async def get_user(self, user_id: uuid.UUID) -> Optional[User]:
        return await self._session.get(User, user_id)

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self._session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    def _new_pair(self, user_id: uuid.UUID) -> TokenPair:
        return TokenPair(
            access_token=create_access_token(user_id, self._settings),
            refresh_token=create_refresh_token(user_id, self._settings),
        )

    # ── Account lifecycle ───────────────────────────────────────────────

    async def sign_up(self, email: str, password: str, name: str) -> User:
        """Create an account, issue its first access token, record it."""
        if await self.find_by_email(email) is not None:
            raise UserAlreadyExists()

        password_hash = await hash_password_async(password)
        avatar = gravatar_url(email)
        user_id = uuid.uuid4()
        user = User(
            id=user_id,
            email=email,
            name=name,
            password=password_hash,
            avatar=avatar,
            token=create_access_token(user_id, self._settings),
        )
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError:
            raise UserAlreadyExists()

        self._session.add(
            CreatedAccount(
                user_id=user_id,
                email=email,
                password=password_hash,
                avatar_url=avatar,
            )
        )
        await self._session.flush()

        logger.info("Registered user %s (%s)", email, user_id)
        return user

    async def sign_in(self, email: str, password: str) -> TokenPair:
        user = await self.find_by_email(email)
        if user is None:
            logger.warning("Sign-in failed: unknown email %s", email)
            raise InvalidCredentials("Email is wrong")
        if not await verify_password_async(password, user.password):
            logger.warning("Sign-in failed: wrong password for %s", email)
            raise InvalidCredentials("Password is wrong")

        pair = self._new_pair(user.id)
        await self._session.execute(
            update(User)
            .where(User.id == user.id)
            .values(token=pair.access_token, refresh_token=pair.refresh_token)
        )
        logger.info("Login: %s (%s)", email, user.id)
        return pair

    async def refresh_tokens(self, user_id: uuid.UUID, refresh_token: str) -> TokenPair:
        """
        Swap a stored refresh token for a new pair.

        The UPDATE only matches while ``refresh_token`` is still the one on
        record, so a token can be exchanged once.
        """
        pair = self._new_pair(user_id)
        result = await self._session.execute(
            update(User)
            .where(User.id == user_id, User.refresh_token == refresh_token)
            .values(token=pair.access_token, refresh_token=pair.refresh_token)
            .returning(User.id)
        )
        if result.scalar_one_or_none() is None:
            raise InvalidToken("Refresh token is invalid or already used")
        return pair

    async def log_out(self, user_id: uuid.UUID) -> None:
        await self._session.execute(
            update(User).where(User.id == user_id).values(token=None, refresh_token=None)
        )
        logger.info("Logout: %s", user_id)

    # ── Profile & preferences ───────────────────────────────────────────

    async def edit_profile(
        self,
        user_id: uuid.UUID,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        avatar_tmp_path: Optional[Path] = None,
    ) -> User:
        """Apply whichever fields were supplied; empty values are ignored."""
        if await self.get_user(user_id) is None:
            raise UserNotFound()

        values = {}
        if name:
            values["name"] = name
        if email:
            owner = await self.find_by_email(email)
            if owner is not None and owner.id != user_id:
                raise UserAlreadyExists("Email is already in use")
            values["email"] = email
        if password:
            values["password"] = await hash_password_async(password)
        if avatar_tmp_path is not None:
            values["avatar"] = avatar_reference(
                avatar_tmp_path, self._settings.avatar_dir_name
            )

        if values:
            try:
                await self._session.execute(
                    update(User)
                    .where(User.id == user_id)
                    .values(**values)
                    .execution_options(synchronize_session="fetch")
                )
            except IntegrityError:
                raise UserAlreadyExists("Email is already in use")

        # the file only lands in public/ once the row points at it
        if avatar_tmp_path is not None:
            await move_avatar(
                avatar_tmp_path,
                self._settings.public_dir,
                self._settings.avatar_dir_name,
            )

        user = await self._session.get(User, user_id, populate_existing=True)
        if user is None:
            raise UserNotFound()
        return user

    async def change_theme(self, user_id: uuid.UUID, theme: str) -> str:
        if self._settings.enforce_theme_values and theme not in THEMES:
            raise InvalidTheme(f"Theme must be one of: {', '.join(THEMES)}")

        result = await self._session.execute(
            update(User)
            .where(User.id == user_id)
            .values(theme=theme)
            .returning(User.theme)
        )
        new_theme = result.scalar_one_or_none()
        if new_theme is None:
            raise UserNotFound()
        return new_theme

    async def send_need_help(self, email: str, comment: str) -> None:
        await self._mailer.send(
            MailMessage(
                to=self._settings.support_email,
                subject=f"Task PRO: Need help for {email}",
                text=comment,
            )
        )

    # ── Password reset ──────────────────────────────────────────────────

    async def forgot_password(self, email: str) -> None:
        """Store a fresh reset code + expiry and email the code."""
        code = generate_random_code(self._settings.reset_code_length)
        expires = self._clock() + timedelta(minutes=self._settings.reset_code_ttl_minutes)

        result = await self._session.execute(
            update(User)
            .where(User.email == email)
            .values(reset_token=code, reset_token_expiration=expires)
            .returning(User.id)
            .execution_options(synchronize_session="fetch")
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            raise UserNotFound()

        await self._mailer.send(
            MailMessage(
                to=email,
                subject="Password Reset Code",
                text=f"Your password reset code is: {code}",
            )
        )
        logger.info("Password reset code issued for %s", user_id)

    async def reset_password(self, reset_token: str, new_password: str) -> None:
        """
        Consume a reset code.  Valid only while ``now < expiration``; the
        password change and clearing both reset fields happen in one UPDATE.
        """
        password_hash = await hash_password_async(new_password)
        result = await self._session.execute(
            update(User)
            .where(
                User.reset_token == reset_token,
                User.reset_token_expiration > self._clock(),
            )
            .values(password=password_hash, reset_token=None, reset_token_expiration=None)
            .returning(User.id)
            .execution_options(synchronize_session="fetch")
        )
        user_id = result.scalar_one_or_none()
        if user_id is None:
            raise InvalidResetCode()
        logger.info("Password reset completed for %s", user_id)

    # ── Google OAuth ────────────────────────────────────────────────────

    def _require_provider(self) -> None:
        if not self._google.is_configured():
            raise ProviderNotConfigured(
                f"{self._google.provider_name.capitalize()} login is not configured"
            )

    def google_auth_url(self) -> str:
        self._require_provider()
        return self._google.get_auth_url()

    async def google_login(self, code: str) -> User:
        """
        Finish the authorization-code flow: fetch the Google profile,
        create the local account on first login, and issue a token.
        """
        self._require_provider()
        profile = await self._google.fetch_profile(code)
        if not profile.email_verified:
            logger.warning("Google login refused: %s is not verified", profile.email)
            raise UnverifiedEmail()

        user = await self.find_by_email(profile.email)
        if user is None:
            user = User(
                id=uuid.uuid4(),
                email=profile.email,
                name=profile.name,
                # placeholder credential, never used for password login
                password=await hash_password_async(profile.id),
                avatar=profile.avatar,
            )
            self._session.add(user)
            await self._session.flush()
            logger.info(
                "Created user %s from %s login", user.id, self._google.provider_name
            )

        token = create_access_token(
            user.id, self._settings, hours=self._settings.oauth_token_hours
        )
        await self._session.execute(
            update(User)
            .where(User.id == user.id)
            .values(token=token)
            .execution_options(synchronize_session="fetch")
        )
        user = await self._session.get(User, user.id, populate_existing=True)
        logger.info("Google login: %s (%s)", user.email, user.id)
        return user
