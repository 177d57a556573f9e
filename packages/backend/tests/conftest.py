"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app via create_app(Settings(...)) pointed at
   sqlite+aiosqlite in-memory. The app owns its Database, so nothing
   leaks between tests and no module-level engine has to be patched.
2. Tables come from the ORM metadata (create_all) — there are no migrations.
3. httpx.AsyncClient over ASGITransport talks to the app in-process.

bcrypt runs at its minimum cost (4 rounds) to keep the suite fast.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crmdesk.config import Settings
from crmdesk.main import create_app

TEST_SECRET = "test-secret-key-that-is-long-enough-for-hs256"


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite://",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "create_tables": False,
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture()
async def settings():
    return make_settings()


@pytest_asyncio.fixture()
async def app(settings):
    app = create_app(settings)
    await app.state.db.create_all()
    try:
        yield app
    finally:
        await app.state.db.dispose()


@pytest_asyncio.fixture()
async def unauthenticated_client(app):
    """HTTP client with no credentials — exercises the real auth gate."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def new_user_body(**overrides) -> dict:
    """Registration body with a unique email and phone."""
    suffix = uuid.uuid4().int % 10**10
    body = {
        "first_name": "Test",
        "last_name": "User",
        "email": f"user-{suffix}@example.com",
        "phone": f"{suffix:010d}",
        "password": "secure_password_123",
    }
    body.update(overrides)
    return body


async def register_and_login(ac: AsyncClient, **overrides) -> dict:
    """Register a user, log in, and return auth headers plus ids."""
    body = new_user_body(**overrides)
    r = await ac.post("/api/auth/register", json=body)
    assert r.status_code == 201, r.text
    user_id = r.json()["userId"]

    r = await ac.post(
        "/api/auth/login",
        json={"emailOrPhone": body["email"], "password": body["password"]},
    )
    assert r.status_code == 200, r.text
    token = r.json()["token"]
    return {
        "user_id": user_id,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
        "body": body,
    }


@pytest_asyncio.fixture()
async def user_a(unauthenticated_client):
    return await register_and_login(unauthenticated_client)


@pytest_asyncio.fixture()
async def user_b(unauthenticated_client):
    return await register_and_login(unauthenticated_client)


@pytest_asyncio.fixture()
async def client(app, user_a):
    """HTTP client already carrying user A's bearer token."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=user_a["headers"],
    ) as ac:
        yield ac


@pytest_asyncio.fixture()
async def other_client(app, user_b):
    """HTTP client carrying user B's bearer token."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers=user_b["headers"],
    ) as ac:
        yield ac
