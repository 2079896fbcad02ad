"""Random one-time codes for password reset."""

from __future__ import annotations

import secrets
import string

_ALPHABET = string.ascii_letters + string.digits


def generate_random_code(length: int = 24) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))
