"""Test fixtures for the backend."""
from collections.abc import AsyncIterator, Awaitable, Callable
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from hypercyber.config import Settings
from hypercyber.database import create_schema
from hypercyber.main import create_app

TEST_SECRET = "test-secret"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a throwaway SQLite file and storage directory."""

    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test_backend.db'}",
        JWT_SECRET=TEST_SECRET,
        STORAGE_TYPE="local",
        STORAGE_LOCAL_PATH=str(tmp_path / "storage"),
        LOG_LEVEL="WARNING",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    """Application with its schema created; startup hooks do not run under ASGITransport."""

    application = create_app(settings)
    await create_schema(application.state.engine)
    yield application
    await application.state.http_client.aclose()
    await application.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an HTTP client for integration tests."""

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Register a user and return the auth response body."""

    async def _register(email: str = "owner@example.com", password: str = "pw1") -> dict:
        response = await client.post(
            "/api/auth/register", json={"email": email, "password": password}
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def create_entity(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Create an entity as the holder of ``token``."""

    async def _create(token: str, name: str = "Acme") -> dict:
        response = await client.post(
            "/api/entities", json={"name": name}, headers=bearer(token)
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _create
