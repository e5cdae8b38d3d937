"""Integration tests for revision history and restore."""

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from infrastructure.database.models import ActivityAction, ActivityLog

pytestmark = pytest.mark.asyncio

BASE = "/api/v1/announcements"


async def _edit(async_client: AsyncClient, headers: dict, announcement_id: str, **changes):
    response = await async_client.put(f"{BASE}/{announcement_id}", json=changes, headers=headers)
    assert response.status_code == 200
    return response.json()


class TestRevisionHistory:
    async def test_list_newest_first(self, async_client: AsyncClient, auth_headers, make_announcement, test_user):
        announcement = await make_announcement(title="v1")
        await _edit(async_client, auth_headers, announcement.id, title="v2")
        await _edit(async_client, auth_headers, announcement.id, title="v3")

        response = await async_client.get(f"{BASE}/{announcement.id}/revisions", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [item["version"] for item in data["items"]] == [3, 2, 1]
        assert [item["title"] for item in data["items"]] == ["v3", "v2", "v1"]
        assert data["items"][0]["change_type"] == "EDIT"
        assert data["items"][0]["change_summary"] == "Edited title"
        assert data["items"][0]["author"]["id"] == test_user.id
        assert "content" not in data["items"][0]

    async def test_list_pagination(self, async_client: AsyncClient, auth_headers, make_announcement):
        announcement = await make_announcement(title="v1")
        for title in ("v2", "v3", "v4"):
            await _edit(async_client, auth_headers, announcement.id, title=title)

        response = await async_client.get(
            f"{BASE}/{announcement.id}/revisions",
            params={"limit": 2, "offset": 1},
            headers=auth_headers,
        )

        data = response.json()
        assert data["total"] == 4
        assert data["limit"] == 2
        assert data["offset"] == 1
        assert [item["version"] for item in data["items"]] == [3, 2]

    async def test_list_missing_announcement(self, async_client: AsyncClient, auth_headers):
        response = await async_client.get(
            f"{BASE}/00000000-0000-0000-0000-000000000000/revisions", headers=auth_headers
        )
        assert response.status_code == 404

    async def test_get_revision_detail(self, async_client: AsyncClient, auth_headers, make_announcement):
        announcement = await make_announcement(title="Detailed", content="<p>full body</p>")
        listed = await async_client.get(f"{BASE}/{announcement.id}/revisions", headers=auth_headers)
        revision_id = listed.json()["items"][0]["id"]

        response = await async_client.get(
            f"{BASE}/{announcement.id}/revisions/{revision_id}", headers=auth_headers
        )

        assert response.status_code == 200
        assert response.json()["content"] == "<p>full body</p>"
        assert response.json()["change_type"] == "CREATE"

    async def test_get_foreign_revision(self, async_client: AsyncClient, auth_headers, make_announcement):
        first = await make_announcement()
        second = await make_announcement()
        listed = await async_client.get(f"{BASE}/{second.id}/revisions", headers=auth_headers)
        foreign_id = listed.json()["items"][0]["id"]

        response = await async_client.get(
            f"{BASE}/{first.id}/revisions/{foreign_id}", headers=auth_headers
        )
        assert response.status_code == 404

    async def test_compare(self, async_client: AsyncClient, auth_headers, make_announcement):
        announcement = await make_announcement(title="Same", content="<p>old</p>")
        await _edit(async_client, auth_headers, announcement.id, content="<p>new</p>")
        items = (
            await async_client.get(f"{BASE}/{announcement.id}/revisions", headers=auth_headers)
        ).json()["items"]

        response = await async_client.get(
            f"{BASE}/{announcement.id}/revisions/compare",
            params={"a": items[1]["id"], "b": items[0]["id"]},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["revision_a"]["version"] == 1
        assert data["revision_b"]["version"] == 2
        assert "content" in data["changed_fields"]
        assert data["changes"]["title"] is False
        assert data["changes"]["content"] is True


class TestRestore:
    async def test_restore(self, async_client: AsyncClient, auth_headers, db_session, make_announcement):
        announcement = await make_announcement(title="Original", content="<p>original</p>")
        await _edit(async_client, auth_headers, announcement.id, title="Changed", content="<p>changed</p>")
        items = (
            await async_client.get(f"{BASE}/{announcement.id}/revisions", headers=auth_headers)
        ).json()["items"]
        version_one = items[-1]

        response = await async_client.post(
            f"{BASE}/{announcement.id}/revisions/{version_one['id']}/restore",
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Restored to version 1"
        assert data["restored_from_version"] == 1
        assert data["revision_count"] == 3
        assert data["revision"]["version"] == 3
        assert data["revision"]["change_type"] == "RESTORE"
        assert data["announcement"]["title"] == "Original"
        assert data["announcement"]["content"] == "<p>original</p>"

        result = await db_session.execute(
            select(ActivityLog).where(ActivityLog.action == ActivityAction.RESTORE.value)
        )
        entry = result.scalar_one()
        assert entry.entity_id == announcement.id
        assert entry.details["restored_from_version"] == 1

    async def test_restore_foreign_revision(
        self, async_client: AsyncClient, auth_headers, make_announcement
    ):
        mine_id = (await make_announcement(title="Mine")).id
        theirs_id = (await make_announcement(title="Theirs")).id
        foreign_id = (
            await async_client.get(f"{BASE}/{theirs_id}/revisions", headers=auth_headers)
        ).json()["items"][0]["id"]

        response = await async_client.post(
            f"{BASE}/{mine_id}/revisions/{foreign_id}/restore", headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Could not restore announcement: Revision not found"

        unchanged = await async_client.get(f"{BASE}/{mine_id}", headers=auth_headers)
        assert unchanged.json()["title"] == "Mine"
        history = await async_client.get(f"{BASE}/{mine_id}/revisions", headers=auth_headers)
        assert history.json()["total"] == 1

    async def test_restore_requires_auth(self, async_client: AsyncClient, make_announcement):
        announcement = await make_announcement()
        response = await async_client.post(
            f"{BASE}/{announcement.id}/revisions/00000000-0000-0000-0000-000000000000/restore"
        )
        assert response.status_code == 401

    async def test_revisions_cascade_on_delete(
        self, async_client: AsyncClient, auth_headers, make_announcement
    ):
        announcement = await make_announcement()
        await _edit(async_client, auth_headers, announcement.id, title="Edited")

        deleted = await async_client.delete(f"{BASE}/{announcement.id}", headers=auth_headers)
        assert deleted.status_code == 204

        response = await async_client.get(f"{BASE}/{announcement.id}/revisions", headers=auth_headers)
        assert response.status_code == 404
