"""
Shared fixtures — in-memory SQLite, test settings, a recording mailer,
a Google connector on ``httpx.MockTransport``, and an ASGI client.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List
from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from auth.dependencies import get_google_connector, get_mailer
from auth.service import AuthService
from config.settings import Settings, get_settings
from connectors.google import GoogleConnector
from database.models import User
from database.session import get_db_session, init_models
from utils.mailer import Mailer, MailMessage


class RecordingMailer(Mailer):
    """Mailer that keeps messages instead of sending them."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: List[MailMessage] = []

    async def send(self, message: MailMessage) -> None:
        self.sent.append(message)


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeGoogle:
    """Scripted Google token + userinfo endpoints."""

    def __init__(self) -> None:
        self.profile: Dict[str, Any] = {
            "id": "109876543210",
            "email": "g.user@gmail.com",
            "name": "Google User",
            "picture": "https://lh3.googleusercontent.com/a/pic",
            "verified_email": True,
        }
        self.token_status = 200
        self.token_requests: List[Dict[str, List[str]]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == "oauth2.googleapis.com" and request.url.path == "/token":
            self.token_requests.append(parse_qs(request.content.decode()))
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.test-token", "expires_in": 3599})
        if request.url.path == "/oauth2/v2/userinfo":
            if request.headers.get("Authorization") != "Bearer ya29.test-token":
                return httpx.Response(401)
            return httpx.Response(200, json=self.profile)
        return httpx.Response(404)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        base_url="http://frontend.test",
        jwt_secret="test-secret",
        google_client_id="client-123",
        google_client_secret="secret-456",
        database_url="sqlite+aiosqlite://",
        public_dir=str(tmp_path / "public"),
        upload_tmp_dir=str(tmp_path / "tmp"),
        mail_transport="log",
    )


@pytest.fixture
def mailer(settings) -> RecordingMailer:
    return RecordingMailer(settings)


@pytest.fixture
def fake_google() -> FakeGoogle:
    return FakeGoogle()


@pytest.fixture
def google(settings, fake_google) -> GoogleConnector:
    return GoogleConnector(settings, transport=httpx.MockTransport(fake_google.handler))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine) -> AsyncSession:
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as s:
        yield s


@pytest.fixture
def service(session, settings, mailer, google, clock) -> AuthService:
    return AuthService(session, settings, mailer, google, clock=clock)


@pytest.fixture
def app(session, settings, mailer, google):
    from main import create_app

    app = create_app()

    async def _session():
        yield session

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_google_connector] = lambda: google
    return app


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def fetch_user(session):
    """Read a user straight from the DB, bypassing stale identity-map state."""

    async def _fetch(email: str) -> User | None:
        result = await session.execute(
            select(User).where(User.email == email).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    return _fetch
