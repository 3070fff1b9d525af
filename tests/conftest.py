"""Shared test fixtures.

Tests run against a throwaway SQLite file per test (aiosqlite) and without
Redis: the rate limiter lets requests through and award notifications are
not published. Access tokens are signed with a key pair generated once per
session, mirroring tokens minted by the identity service.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone

import jwt
import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from rockspotter.achievements.seed import seed_achievements
from rockspotter.auth.jwt import reset_keys
from rockspotter.config import get_settings
from rockspotter.database import close_db, create_schema, init_db, session_scope
from rockspotter.main import create_app


@pytest.fixture(scope="session")
def jwt_keys(tmp_path_factory: pytest.TempPathFactory) -> tuple[bytes, str]:
    """RSA key pair for signing test tokens. Returns (private PEM, public key path)."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    public_path = tmp_path_factory.mktemp("keys") / "jwt_public.pem"
    public_path.write_bytes(public_pem)
    return private_pem, str(public_path)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch, tmp_path, jwt_keys):
    """Point settings at a per-test database and the test public key."""
    monkeypatch.setenv("ROCKSPOTTER_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'rockspotter.db'}")
    monkeypatch.setenv("ROCKSPOTTER_REDIS_URL", "")
    monkeypatch.setenv("ROCKSPOTTER_JWT_PUBLIC_KEY_PATH", jwt_keys[1])
    monkeypatch.setenv("ROCKSPOTTER_LOG_FORMAT", "console")
    get_settings.cache_clear()
    reset_keys()
    yield
    get_settings.cache_clear()
    reset_keys()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema with the default achievement catalog seeded."""
    await init_db(get_settings().database_url)
    await create_schema()
    async with session_scope() as session:
        await seed_achievements(session)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests."""
    async with session_scope() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app (lifespan is not run, the fixtures set it up)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_token(jwt_keys) -> Callable[..., str]:
    """Build a signed access token the way the identity service does."""
    private_pem = jwt_keys[0]

    def _make(
        username: str,
        *,
        email: str | None = None,
        role: str | None = None,
        token_type: str = "access",
        expires_in: timedelta = timedelta(minutes=15),
        issuer: str = "rockspotter.app",
    ) -> str:
        now = datetime.now(timezone.utc)
        payload: dict[str, object] = {
            "sub": username,
            "email": email or f"{username}@example.com",
            "type": token_type,
            "iss": issuer,
            "iat": now,
            "exp": now + expires_in,
        }
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, private_pem, algorithm="RS256")

    return _make


@pytest.fixture
def auth_headers(make_token) -> Callable[..., dict[str, str]]:
    """Authorization headers for a username (and optional role)."""

    def _headers(username: str, role: str | None = None) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(username, role=role)}"}

    return _headers
