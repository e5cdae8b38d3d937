"""Integration tests for health endpoints."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


class TestHealth:
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["app"] == "Newsroom CMS"

    async def test_liveness(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/live")
        assert response.json() == {"alive": True}

    async def test_database(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/db")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    async def test_readiness(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/health/ready")
        assert response.json() == {"ready": True, "database": "ok"}

    async def test_request_id_echoed(self, async_client: AsyncClient):
        request_id = "1b4e28ba-2fa1-11d2-883f-0016d3cca427"
        response = await async_client.get(
            "/api/v1/health/live", headers={"X-Request-ID": request_id}
        )
        assert response.headers["X-Request-ID"] == request_id


class TestSchedulerHealth:
    async def test_requires_admin(self, async_client: AsyncClient, auth_headers):
        response = await async_client.get("/api/v1/health/scheduler", headers=auth_headers)
        assert response.status_code == 403

    async def test_counts_overdue_rows(
        self, async_client: AsyncClient, admin_headers, make_announcement
    ):
        now = datetime.now(timezone.utc)
        await make_announcement(is_published=True, takedown_at=now - timedelta(minutes=5))
        await make_announcement(scheduled_at=now - timedelta(minutes=5))
        await make_announcement(scheduled_at=now + timedelta(days=1))

        response = await async_client.get("/api/v1/health/scheduler", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["overdue_announcements"] == 2
        assert "interval_seconds" in data
