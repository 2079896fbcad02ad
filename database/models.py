"""
SQLAlchemy ORM models for user accounts.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(128), nullable=False, default="")
    password = Column(String(255), nullable=False)   # bcrypt hash
    avatar = Column(Text, nullable=False, default="")
    theme = Column(String(32), nullable=False, default="light")

    token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)

    # set together, cleared together
    reset_token = Column(String(64), nullable=True, index=True)
    reset_token_expiration = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class CreatedAccount(Base):
    """Secondary record written once per signup for downstream consumers."""

    __tablename__ = "created_accounts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    email = Column(String(255), nullable=False)
    password = Column(String(255), nullable=False)   # same hash as users.password
    avatar_url = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), default=_utcnow)
