"""Integration tests for the public news site endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from infrastructure.database.models import Announcement

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/public"


class TestPublicListing:
    async def test_only_visible_announcements(
        self, async_client: AsyncClient, make_announcement, past, future
    ):
        await make_announcement(title="Live", is_published=True)
        await make_announcement(title="Draft")
        await make_announcement(title="Scheduled", is_published=True, scheduled_at=future)
        await make_announcement(title="Expired", is_published=True, takedown_at=past)
        await make_announcement(title="Window", is_published=True, scheduled_at=past, takedown_at=future)

        response = await async_client.get(f"{BASE}/announcements")

        assert response.status_code == 200
        data = response.json()
        assert sorted(item["title"] for item in data["items"]) == ["Live", "Window"]
        assert data["total"] == 2

    async def test_no_auth_required_and_no_private_fields(
        self, async_client: AsyncClient, make_announcement
    ):
        await make_announcement(title="Live", is_published=True)

        response = await async_client.get(f"{BASE}/announcements")

        item = response.json()["items"][0]
        assert "draft_content" not in item
        assert "is_published" not in item
        assert item["reading_time"] == 1

    async def test_pinned_first(self, async_client: AsyncClient, db_session, make_announcement, now):
        pinned = await make_announcement(title="Pinned", is_published=True, is_pinned=True)
        await make_announcement(title="Fresh", is_published=True)
        pinned.created_at = now - timedelta(days=7)
        await db_session.commit()

        response = await async_client.get(f"{BASE}/announcements")

        assert [item["title"] for item in response.json()["items"]] == ["Pinned", "Fresh"]

    async def test_filter_by_category_slug(
        self, async_client: AsyncClient, make_announcement, category
    ):
        await make_announcement(title="Live", is_published=True)

        matching = await async_client.get(f"{BASE}/announcements", params={"category": category.slug})
        other = await async_client.get(f"{BASE}/announcements", params={"category": "sports"})

        assert matching.json()["total"] == 1
        assert other.json()["total"] == 0

    async def test_public_cache_header(self, async_client: AsyncClient):
        response = await async_client.get(f"{BASE}/announcements")
        assert "public" in response.headers.get("cache-control", "")


class TestPublicDetail:
    async def test_get_by_slug_counts_view(
        self, async_client: AsyncClient, db_session, make_announcement
    ):
        announcement = await make_announcement(title="Big News", is_published=True)

        first = await async_client.get(f"{BASE}/announcements/big-news")
        second = await async_client.get(f"{BASE}/announcements/big-news")

        assert first.status_code == 200
        assert first.json()["title"] == "Big News"
        assert first.json()["view_count"] == 0
        assert second.json()["view_count"] == 1

        result = await db_session.execute(
            select(Announcement.view_count).where(Announcement.id == announcement.id)
        )
        assert result.scalar_one() == 2

    async def test_hidden_announcement_is_not_found(
        self, async_client: AsyncClient, make_announcement, future
    ):
        await make_announcement(title="Embargoed", is_published=True, scheduled_at=future)
        await make_announcement(title="Unpublished")

        embargoed = await async_client.get(f"{BASE}/announcements/embargoed")
        unpublished = await async_client.get(f"{BASE}/announcements/unpublished")
        missing = await async_client.get(f"{BASE}/announcements/never-existed")

        assert embargoed.status_code == 404
        assert unpublished.status_code == 404
        assert missing.status_code == 404
        assert embargoed.json() == missing.json()


class TestFeaturedAndCategories:
    async def test_featured(self, async_client: AsyncClient, make_announcement):
        await make_announcement(title="Hero", is_published=True, is_hero=True)
        await make_announcement(title="Pinned", is_published=True, is_pinned=True)
        await make_announcement(title="Draft hero", is_hero=True)

        response = await async_client.get(f"{BASE}/announcements/featured")

        assert response.status_code == 200
        data = response.json()
        assert [item["title"] for item in data["hero"]] == ["Hero"]
        assert [item["title"] for item in data["pinned"]] == ["Pinned"]

    async def test_categories_with_counts(self, async_client: AsyncClient, make_announcement, category):
        await make_announcement()
        await make_announcement()

        response = await async_client.get(f"{BASE}/categories")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["slug"] == category.slug
        assert data[0]["announcement_count"] == 2
        assert data[0]["order"] == 1
