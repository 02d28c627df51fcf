"""
TaskHub Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment variables are set before the first taskhub import so the
       settings singleton, the engine and the token service all pick up the
       test values. API tests run the real app over httpx's ASGITransport
       against an in-memory SQLite database (aiosqlite, StaticPool).

Fixture Hierarchy (all function-scoped):
    database        creates the schema; disposing the engine afterwards
                    throws the in-memory database away
    rate_limiter    generous memory-backed limiter (tests opt into tight ones)
    client          AsyncClient over the app built by create_app()
    make_user       registers + logs in a user through the API
    make_admin      inserts an admin row directly, then logs in
    mock_db_session AsyncMock session for service unit tests
"""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_ACCESS_SECRET"] = "test-access-secret-0123456789abcdef0123"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret-0123456789abcdef012"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["TRUST_PROXY"] = "false"

import itertools  # noqa: E402
from typing import Any, Awaitable, Callable, Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

import taskhub.models  # noqa: E402,F401
from taskhub.database import Base, async_session_factory, engine  # noqa: E402
from taskhub.main import create_app  # noqa: E402
from taskhub.models.user import Role, User  # noqa: E402
from taskhub.services.password_hasher import hash_password  # noqa: E402
from taskhub.services.rate_limiter import MemoryRateLimitStore, RateLimiter  # noqa: E402
from taskhub.services.token_service import token_service  # noqa: E402

DEFAULT_PASSWORD = "Password123"

_user_counter = itertools.count(1)


def auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


# ══════════════════════════════════════════════════════════════════════════
# Database & App
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_session_factory
    await engine.dispose()


@pytest.fixture
def rate_limiter() -> RateLimiter:
    return RateLimiter(MemoryRateLimitStore(), limit=10_000, window_seconds=900)


@pytest_asyncio.fixture
async def client(database, rate_limiter):
    """
    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    app = create_app(rate_limiter=rate_limiter)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════

async def _login(client: AsyncClient, email: str, password: str) -> Dict[str, Any]:
    response = await client.post(
        "/api/v1/auth/login", json={"email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    tokens = response.json()
    identity = token_service.verify_access_token(tokens["accessToken"])
    return {
        "id": identity.user_id,
        "email": email,
        "password": password,
        "access_token": tokens["accessToken"],
        "refresh_token": tokens["refreshToken"],
        "headers": auth_headers(tokens["accessToken"]),
    }


@pytest.fixture
def make_user(client) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Registers and logs in a fresh `user`; returns id, tokens and headers."""

    async def factory(email: Optional[str] = None, password: str = DEFAULT_PASSWORD) -> Dict[str, Any]:
        email = email or f"user{next(_user_counter)}@example.com"
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Test User", "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return await _login(client, email, password)

    return factory


@pytest.fixture
def make_admin(client, database) -> Callable[..., Awaitable[Dict[str, Any]]]:
    """Admins cannot register through the API; insert one and log in."""

    async def factory(email: Optional[str] = None, password: str = DEFAULT_PASSWORD) -> Dict[str, Any]:
        email = email or f"admin{next(_user_counter)}@example.com"
        async with database() as session:
            session.add(
                User(
                    name="Admin",
                    email=email,
                    password_hash=await hash_password(password),
                    role=Role.ADMIN.value,
                )
            )
            await session.commit()
        return await _login(client, email, password)

    return factory


# ══════════════════════════════════════════════════════════════════════════
# Unit-test Doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for an AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock(return_value=MagicMock())
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session
