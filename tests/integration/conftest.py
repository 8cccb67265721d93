"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Pre-condition: PostgreSQL and Redis reachable via DATABASE_URL / REDIS_URL,
and `alembic upgrade head` applied.
"""

import uuid
from dataclasses import dataclass

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app

PASSWORD = "TestPass1"


@dataclass
class Member:
    user_id: str
    email: str
    headers: dict[str, str]
    refresh_token: str


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def signup(client: AsyncClient, name: str = "Tester") -> Member:
    """Register a fresh user and log in."""
    email = f"{name.lower()}_{uuid.uuid4().hex[:8]}@example.com"
    reg = await client.post(
        "/api/v1/auth/register", json={"name": name, "email": email, "password": PASSWORD}
    )
    assert reg.status_code == 201, reg.text
    login = await client.post("/api/v1/auth/login", json={"email": email, "password": PASSWORD})
    data = login.json()["data"]
    return Member(
        user_id=data["user"]["user_id"],
        email=email,
        headers={"Authorization": f"Bearer {data['access_token']}"},
        refresh_token=data["refresh_token"],
    )


async def create_listing(client: AsyncClient, owner: Member, **fields) -> dict:
    body = {"name": "Sepeda Lipat", "price": "100000", **fields}
    resp = await client.post("/api/v1/listings", json=body, headers=owner.headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
