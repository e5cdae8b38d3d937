"""Integration tests for rate limiting middleware."""
import pytest
from httpx import AsyncClient

from infrastructure.database.models.user import User

pytestmark = pytest.mark.asyncio


class TestRateLimitingLogin:
    """Tests for rate limiting on login endpoint."""

    async def test_login_rate_limit_exceeded(self, async_client: AsyncClient, test_user: User):
        """Test that login endpoint is rate limited (5 requests per minute)."""
        # Make 5 failed attempts (should work)
        for i in range(5):
            response = await async_client.post("/api/v1/auth/login", json={
                "email": f"nonexistent{i}@example.com",
                "password": "wrongpassword"
            })
            # Should get 401 for wrong credentials, not 429
            assert response.status_code == 401

        # 6th attempt should be rate limited
        response = await async_client.post("/api/v1/auth/login", json={
            "email": "another@example.com",
            "password": "wrongpassword"
        })
        assert response.status_code == 429

    async def test_login_rate_limit_with_valid_credentials(self, async_client: AsyncClient, test_user: User):
        """Test that valid login attempts are also rate limited."""
        for i in range(5):
            response = await async_client.post("/api/v1/auth/login", json={
                "email": test_user.email,
                "password": "testpassword123"
            })
            assert response.status_code == 200

        response = await async_client.post("/api/v1/auth/login", json={
            "email": test_user.email,
            "password": "testpassword123"
        })
        assert response.status_code == 429


class TestRateLimitingNewsletter:
    """Tests for rate limiting on the public subscribe endpoint."""

    async def test_subscribe_rate_limit_exceeded(self, async_client: AsyncClient):
        """Test that subscribe is rate limited (10 requests per hour)."""
        for i in range(10):
            response = await async_client.post("/api/v1/newsletter/subscribe", json={
                "email": f"reader{i}@example.com"
            })
            assert response.status_code == 200

        response = await async_client.post("/api/v1/newsletter/subscribe", json={
            "email": "reader11@example.com"
        })
        assert response.status_code == 429

    async def test_limits_are_independent_per_endpoint(self, async_client: AsyncClient):
        """Exhausting login does not block subscribing."""
        for i in range(6):
            await async_client.post("/api/v1/auth/login", json={
                "email": f"user{i}@example.com",
                "password": "wrongpass"
            })

        response = await async_client.post("/api/v1/newsletter/subscribe", json={
            "email": "reader@example.com"
        })
        assert response.status_code == 200

