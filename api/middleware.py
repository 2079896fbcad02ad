"""
Global middleware and error mapping.
"""

from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

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

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    UserAlreadyExists: status.HTTP_409_CONFLICT,
    InvalidCredentials: status.HTTP_401_UNAUTHORIZED,
    InvalidToken: status.HTTP_401_UNAUTHORIZED,
    UserNotFound: status.HTTP_404_NOT_FOUND,
    InvalidResetCode: status.HTTP_400_BAD_REQUEST,
    InvalidTheme: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnverifiedEmail: status.HTTP_403_FORBIDDEN,
    ProviderNotConfigured: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: AuthError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_ERROR:
            return _STATUS_BY_ERROR[cls]
    return status.HTTP_400_BAD_REQUEST


def register_middleware(app: FastAPI) -> None:
    """Attach app-level middleware and exception handlers."""

    @app.middleware("http")
    async def request_timer(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.debug("%s %s — %.3fs", request.method, request.url.path, elapsed)
        return response

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        code = status_for(exc)
        logger.debug("%s %s → %d %s", request.method, request.url.path, code, exc.message)
        return JSONResponse(status_code=code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Server error"},
        )
