"""
Tests for the domain error → HTTP status mapping.
"""

import pytest

from api.middleware import status_for
from auth.errors import (
    AuthError,
    InvalidCredentials,
    InvalidResetCode,
    InvalidTheme,
    InvalidToken,
    ProviderNotConfigured,
    UnverifiedEmail,
    UserAlreadyExists,
    UserNotFound,
)


@pytest.mark.parametrize(
    "error, code",
    [
        (UserAlreadyExists(), 409),
        (InvalidCredentials(), 401),
        (InvalidToken(), 401),
        (UserNotFound(), 404),
        (InvalidResetCode(), 400),
        (InvalidTheme(), 422),
        (UnverifiedEmail(), 403),
        (ProviderNotConfigured(), 503),
        (AuthError(), 400),
    ],
)
def test_status_for(error, code):
    assert status_for(error) == code


def test_default_messages():
    assert UserNotFound().message == "User not found"
    assert InvalidResetCode().message == "Invalid or expired reset code"
    assert InvalidCredentials("Email is wrong").message == "Email is wrong"
