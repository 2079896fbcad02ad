"""
Domain errors raised by the auth service.

The service only says *what* went wrong; ``api.middleware`` decides which
HTTP status each error maps to.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every expected auth failure."""

    default_message = "Authentication error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UserAlreadyExists(AuthError):
    default_message = "User already exist"


class InvalidCredentials(AuthError):
    default_message = "Email or password is wrong"


class InvalidToken(AuthError):
    default_message = "Not authorized"


class UserNotFound(AuthError):
    default_message = "User not found"


class InvalidResetCode(AuthError):
    default_message = "Invalid or expired reset code"


class InvalidTheme(AuthError):
    default_message = "Unsupported theme"


class UnverifiedEmail(AuthError):
    default_message = "Email is not verified by the provider"


class ProviderNotConfigured(AuthError):
    default_message = "Login provider is not configured"
