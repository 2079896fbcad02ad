"""
Auth API routes — signup, signin, tokens, profile, password reset, Google.

Route prefix: /api/users
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from auth.dependencies import (
    RefreshContext,
    get_auth_service,
    get_current_user,
    get_refresh_context,
)
from auth.service import AuthService
from config.settings import Settings, get_settings
from database.models import User
from utils.avatars import stash_upload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


# ── Request schemas ────────────────────────────────────────────────────


class SignUpRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128)
    email: str = Field(..., min_length=5, max_length=255)
    password: str = Field(..., min_length=6, max_length=128)


class SignInRequest(BaseModel):
    email: str
    password: str


class HelpRequest(BaseModel):
    email: str = Field(..., min_length=5, max_length=255)
    comment: str = Field(..., min_length=1)


class ThemeRequest(BaseModel):
    theme: str = Field(..., min_length=1, max_length=32)


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reset_token: str = Field(..., alias="resetToken")
    new_password: str = Field(..., alias="newPassword", min_length=6, max_length=128)


# ── Account lifecycle ──────────────────────────────────────────────────


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def sign_up(
    req: SignUpRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Register a new user."""
    user = await service.sign_up(req.email, req.password, req.name)
    return {
        "user": {"name": user.name, "email": user.email},
        "message": "User created",
    }


@router.post("/signin")
async def sign_in(
    req: SignInRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    pair = await service.sign_in(req.email, req.password)
    return {
        "token": pair.access_token,
        "refreshToken": pair.refresh_token,
        "user": {"email": req.email},
    }


@router.post("/refresh")
async def refresh_token(
    ctx: RefreshContext = Depends(get_refresh_context),
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    pair = await service.refresh_tokens(ctx.user_id, ctx.refresh_token)
    return {"accessToken": pair.access_token, "refreshToken": pair.refresh_token}


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def log_out(
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    await service.log_out(user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/current")
async def current(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return {
        "name": user.name,
        "email": user.email,
        "avatar": user.avatar,
        "theme": user.theme,
    }


# ── Profile & preferences ──────────────────────────────────────────────


@router.put("/profile")
async def edit_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None, min_length=6, max_length=128),
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Partial profile update; an ``avatar`` file replaces the picture."""
    tmp_path: Optional[Path] = None
    try:
        if avatar is not None and avatar.filename:
            tmp_path = await stash_upload(avatar.file, avatar.filename, settings.upload_tmp_dir)
        updated = await service.edit_profile(
            user.id,
            name=name,
            email=email,
            password=password,
            avatar_tmp_path=tmp_path,
        )
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()

    return {
        "user": {
            "name": updated.name,
            "email": updated.email,
            "avatar": updated.avatar,
        }
    }


@router.patch("/theme")
async def change_theme(
    req: ThemeRequest,
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    theme = await service.change_theme(user.id, req.theme)
    return {"theme": theme}


@router.post("/help")
async def send_need_help(
    req: HelpRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    await service.send_need_help(req.email, req.comment)
    return {"message": "Mail sent"}


# ── Password reset ─────────────────────────────────────────────────────


@router.post("/forgot-password")
async def forgot_password(
    req: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    await service.forgot_password(req.email)
    return {"message": "Password reset code sent successfully"}


@router.post("/reset-password")
async def reset_password(
    req: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> Dict[str, str]:
    await service.reset_password(req.reset_token, req.new_password)
    return {"message": "Password successfully changed"}


# ── Google OAuth ───────────────────────────────────────────────────────


@router.get("/google")
async def google_auth(service: AuthService = Depends(get_auth_service)) -> RedirectResponse:
    """Send the browser to Google's consent screen."""
    return RedirectResponse(service.google_auth_url(), status_code=status.HTTP_302_FOUND)


@router.get("/google-redirect")
async def google_redirect(
    code: str = Query(...),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    OAuth callback — Google redirects here after consent.

    Logs the user in (creating the account on first visit) and hands the
    session back to the frontend as query parameters.
    """
    user = await service.google_login(code)
    params = urlencode(
        {
            "token": user.token,
            "email": user.email,
            "name": user.name,
            "avatar": user.avatar,
            "theme": user.theme,
        }
    )
    return RedirectResponse(f"{settings.base_url}?{params}", status_code=status.HTTP_302_FOUND)
