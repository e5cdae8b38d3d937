"""
Unit tests for announcement media.

An announcement carries at most one attachment; the ORM helper, the API
schema union and the database CHECK constraint all enforce it.
"""

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from api.schemas.content import AnnouncementCreateRequest, AnnouncementResponse
from core.domain.media import (
    ImageMedia,
    MediaKind,
    UploadedVideoMedia,
    YouTubeMedia,
    extract_youtube_id,
)
from infrastructure.database.models.content import Announcement


class TestYouTube:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://youtube.com/shorts/dQw4w9WgXcQ",
        ],
    )
    def test_extracts_id(self, url):
        assert extract_youtube_id(url) == "dQw4w9WgXcQ"

    def test_rejects_other_hosts(self):
        assert extract_youtube_id("https://vimeo.com/123456") is None
        with pytest.raises(ValueError):
            YouTubeMedia(url="https://vimeo.com/123456")

    def test_embed_url(self):
        media = YouTubeMedia(url="https://youtu.be/dQw4w9WgXcQ")
        assert media.embed_url == "https://www.youtube.com/embed/dQw4w9WgXcQ"


class TestApplyMedia:
    def test_switching_kind_clears_other_columns(self):
        announcement = Announcement(title="t", slug="t", content="c", category_id="x")
        announcement.apply_media(ImageMedia(path="/img/a.png"))
        announcement.apply_media(YouTubeMedia(url="https://youtu.be/dQw4w9WgXcQ"))

        assert announcement.media_kind == MediaKind.YOUTUBE.value
        assert announcement.image_path is None
        assert announcement.video_path is None
        assert isinstance(announcement.media, YouTubeMedia)

    def test_clearing(self):
        announcement = Announcement(title="t", slug="t", content="c", category_id="x")
        announcement.apply_media(UploadedVideoMedia(path="/video/a.mp4"))
        announcement.apply_media(None)

        assert announcement.media_kind == MediaKind.NONE.value
        assert announcement.media is None
        assert announcement.video_path is None

    def test_snapshot_records_image_path(self):
        announcement = Announcement(title="t", slug="t", content="c", category_id="x")
        announcement.apply_media(ImageMedia(path="/img/a.png"))
        assert announcement.snapshot().image_path == "/img/a.png"


class TestMediaSchema:
    def test_discriminated_union(self):
        request = AnnouncementCreateRequest(
            title="Video",
            content="c",
            category_id="x",
            media={"kind": "youtube", "url": "https://youtu.be/dQw4w9WgXcQ"},
        )
        kwargs = request.to_service_kwargs()
        assert kwargs["media"] == YouTubeMedia(url="https://youtu.be/dQw4w9WgXcQ")

    def test_bad_youtube_url_rejected(self):
        with pytest.raises(ValidationError):
            AnnouncementCreateRequest(
                title="Video",
                content="c",
                category_id="x",
                media={"kind": "youtube", "url": "https://example.com/video"},
            )

    def test_image_with_url_field_rejected(self):
        with pytest.raises(ValidationError):
            AnnouncementCreateRequest(
                title="Image",
                content="c",
                category_id="x",
                media={"kind": "image", "url": "https://youtu.be/dQw4w9WgXcQ"},
            )

    async def test_response_serialises_media(self, make_announcement):
        announcement = await make_announcement(
            media=YouTubeMedia(url="https://www.youtube.com/watch?v=dQw4w9WgXcQ")
        )
        data = AnnouncementResponse.model_validate(announcement).model_dump()
        assert data["media"]["kind"] == "youtube"
        assert data["media"]["embed_url"] == "https://www.youtube.com/embed/dQw4w9WgXcQ"


class TestMediaConstraint:
    async def test_two_media_columns_rejected(self, db_session, category):
        announcement = Announcement(
            title="Broken",
            slug="broken",
            content="c",
            category_id=category.id,
            media_kind=MediaKind.IMAGE.value,
            image_path="/img/a.png",
            video_path="/video/a.mp4",
        )
        db_session.add(announcement)
        with pytest.raises(IntegrityError):
            await db_session.flush()
        await db_session.rollback()
