"""Integration tests for authentication endpoints."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models.user import User, UserStatus

pytestmark = pytest.mark.asyncio


class TestLogin:
    """Tests for editor login."""

    async def test_login_success(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["expires_in"] > 0

    async def test_login_is_case_insensitive_on_email(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email.upper(), "password": "testpassword123"},
        )
        assert response.status_code == 200

    async def test_login_wrong_password(self, async_client: AsyncClient, test_user: User):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "wrongpassword"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_login_unknown_email(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "whatever123"},
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_login_suspended_user(
        self, async_client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        test_user.status = UserStatus.SUSPENDED.value
        await db_session.commit()

        response = await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )
        assert response.status_code == 403

    async def test_login_tracks_last_login(
        self, async_client: AsyncClient, db_session: AsyncSession, test_user: User
    ):
        await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )

        await db_session.refresh(test_user)
        assert test_user.last_login is not None
        assert test_user.login_count == 1


class TestCurrentUser:
    """Tests for token-authenticated access."""

    async def test_get_me(self, async_client: AsyncClient, test_user: User, auth_headers: dict):
        response = await async_client.get("/api/v1/auth/me", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == test_user.email
        assert data["role"] == "editor"
        assert "password_hash" not in data

    async def test_get_me_with_login_token(self, async_client: AsyncClient, test_user: User):
        login = await async_client.post(
            "/api/v1/auth/login",
            json={"email": test_user.email, "password": "testpassword123"},
        )
        token = login.json()["access_token"]

        response = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200

    async def test_missing_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/auth/me")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid or expired token"

    async def test_non_bearer_scheme(self, async_client: AsyncClient, auth_headers: dict):
        token = auth_headers["Authorization"].split(" ", 1)[1]
        response = await async_client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Basic {token}"}
        )
        assert response.status_code == 401

    async def test_suspended_user_token_rejected(
        self,
        async_client: AsyncClient,
        db_session: AsyncSession,
        test_user: User,
        auth_headers: dict,
    ):
        test_user.status = UserStatus.SUSPENDED.value
        await db_session.commit()

        response = await async_client.get("/api/v1/auth/me", headers=auth_headers)
        assert response.status_code == 403
