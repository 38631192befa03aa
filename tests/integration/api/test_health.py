"""Tests for health check endpoints."""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_200(self, client: AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_health_returns_correct_structure(self, client: AsyncClient) -> None:
        response = await client.get("/health")
        data = response.json()

        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"
        assert "timestamp" in data
        assert "environment" in data
        assert data["database"] is None


@pytest.fixture
def health_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], AsyncGenerator[AsyncClient, None]]:
    """Client whose detailed health check reads the test database."""
    from infrastructure.database.session import get_async_session
    from main import create_app

    app = create_app()

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_session
    return lambda: AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


class TestDetailedHealthEndpoint:
    """Tests for the detailed health check."""

    @pytest.mark.asyncio
    async def test_reports_degraded_when_catalog_is_empty(self, health_client) -> None:
        async with health_client() as c:
            response = await c.get("/health/detailed")

        data = response.json()
        assert response.status_code == 200
        assert data["database"] == "healthy"
        assert data["catalog"] == "empty"
        assert data["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_reports_healthy_when_catalog_is_seeded(self, seeded, health_client) -> None:
        async with health_client() as c:
            response = await c.get("/health/detailed")

        data = response.json()
        assert data["database"] == "healthy"
        assert data["catalog"] == "seeded"
        assert data["status"] == "healthy"
