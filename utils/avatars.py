"""
Avatar helpers — default Gravatar URLs and moving uploaded files into
the public avatar directory.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)

_GRAVATAR_BASE = "https://www.gravatar.com/avatar"


def gravatar_url(email: str) -> str:
    """Deterministic Gravatar URL for ``email`` (no network access)."""
    digest = hashlib.md5(email.strip().lower().encode()).hexdigest()
    return f"{_GRAVATAR_BASE}/{digest}"


def _write_temp(source: BinaryIO, target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("wb") as fh:
        shutil.copyfileobj(source, fh)


async def stash_upload(source: BinaryIO, original_name: str, tmp_dir: str | Path) -> Path:
    """
    Spool an uploaded file into the temporary upload directory.

    The stored name is ``<uuid>_<original name>`` so concurrent uploads of
    the same filename never clash.
    """
    safe_name = Path(original_name or "avatar").name
    target = Path(tmp_dir) / f"{uuid.uuid4().hex}_{safe_name}"
    await asyncio.to_thread(_write_temp, source, target)
    return target


def avatar_reference(tmp_path: str | Path, avatar_dir_name: str) -> str:
    """Reference stored on the user once ``tmp_path`` has been moved."""
    return f"{avatar_dir_name}/{Path(tmp_path).name}"


async def move_avatar(tmp_path: str | Path, public_dir: str | Path, avatar_dir_name: str) -> str:
    """
    Rename ``tmp_path`` into ``<public_dir>/<avatar_dir_name>/`` and return
    the stored reference relative to the public root.
    """
    tmp_path = Path(tmp_path)
    avatar_dir = Path(public_dir) / avatar_dir_name
    avatar_dir.mkdir(parents=True, exist_ok=True)
    new_path = avatar_dir / tmp_path.name
    await asyncio.to_thread(tmp_path.rename, new_path)
    logger.debug("Avatar moved to %s", new_path)
    return avatar_reference(tmp_path, avatar_dir_name)
