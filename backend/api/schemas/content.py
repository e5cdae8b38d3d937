"""
Announcement and revision request/response schemas.
"""

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from core.domain.announcement import TITLE_MAX_LENGTH, as_utc, evaluate_visibility
from core.domain.media import (
    ImageMedia,
    Media,
    UploadedVideoMedia,
    YouTubeMedia,
    extract_youtube_id,
)
from core.text import calculate_reading_time
from services.announcements import BULK_MAX_IDS, BulkAction

from .auth import UserSummary


# ============================================================================
# Media
# ============================================================================


class ImageMediaSchema(BaseModel):
    """Static image attachment."""

    kind: Literal["image"] = "image"
    path: str = Field(..., min_length=1, max_length=500)

    def to_domain(self) -> ImageMedia:
        return ImageMedia(path=self.path)


class VideoMediaSchema(BaseModel):
    """Uploaded video attachment."""

    kind: Literal["video"] = "video"
    path: str = Field(..., min_length=1, max_length=500)

    def to_domain(self) -> UploadedVideoMedia:
        return UploadedVideoMedia(path=self.path)


class YouTubeMediaSchema(BaseModel):
    """Embedded YouTube video."""

    kind: Literal["youtube"] = "youtube"
    url: str = Field(..., min_length=1, max_length=500)

    @field_validator("url")
    @classmethod
    def validate_youtube_url(cls, v: str) -> str:
        if extract_youtube_id(v) is None:
            raise ValueError("URL must be a YouTube watch, youtu.be, embed or shorts link")
        return v

    @computed_field
    @property
    def embed_url(self) -> str:
        return YouTubeMedia(url=self.url).embed_url

    def to_domain(self) -> YouTubeMedia:
        return YouTubeMedia(url=self.url)


MediaSchema = Annotated[
    Union[ImageMediaSchema, VideoMediaSchema, YouTubeMediaSchema],
    Field(discriminator="kind"),
]


def media_to_dict(media: Optional[Media]) -> Optional[dict]:
    """Plain dict for a domain media value, suitable for MediaSchema validation."""
    if media is None:
        return None
    if isinstance(media, YouTubeMedia):
        return {"kind": media.kind.value, "url": media.url}
    return {"kind": media.kind.value, "path": media.path}


def _normalise_media(value: Any) -> Any:
    if isinstance(value, (ImageMedia, UploadedVideoMedia, YouTubeMedia)):
        return media_to_dict(value)
    return value


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value)


# ============================================================================
# Announcement Schemas
# ============================================================================


class AnnouncementCreateRequest(BaseModel):
    """Request to create an announcement."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    content: str
    excerpt: Optional[str] = Field(None, max_length=1000)
    category_id: str
    media: Optional[MediaSchema] = None
    is_published: bool = False
    is_pinned: bool = False
    is_hero: bool = False
    scheduled_at: Optional[datetime] = None
    takedown_at: Optional[datetime] = None

    utc_times = field_validator("scheduled_at", "takedown_at")(_utc)

    def to_service_kwargs(self) -> dict:
        data = self.model_dump(exclude={"media"})
        data["media"] = self.media.to_domain() if self.media else None
        return data


class AnnouncementUpdateRequest(BaseModel):
    """Partial update; only the fields present in the body are changed."""

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    content: Optional[str] = None
    excerpt: Optional[str] = Field(None, max_length=1000)
    category_id: Optional[str] = None
    media: Optional[MediaSchema] = None
    is_published: Optional[bool] = None
    is_pinned: Optional[bool] = None
    is_hero: Optional[bool] = None
    scheduled_at: Optional[datetime] = None
    takedown_at: Optional[datetime] = None

    utc_times = field_validator("scheduled_at", "takedown_at")(_utc)

    def to_changes(self) -> dict:
        changes = self.model_dump(exclude_unset=True, exclude={"media"})
        if "media" in self.model_fields_set:
            changes["media"] = self.media.to_domain() if self.media else None
        return changes


class CategoryRef(BaseModel):
    id: str
    name: str
    slug: str
    color: str

    model_config = ConfigDict(from_attributes=True)


class AnnouncementResponse(BaseModel):
    """Announcement as seen by editors."""

    id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    category_id: str
    category: Optional[CategoryRef] = None
    author: Optional[UserSummary] = None
    media: Optional[MediaSchema] = None
    is_published: bool
    is_pinned: bool
    is_hero: bool
    scheduled_at: Optional[datetime] = None
    takedown_at: Optional[datetime] = None
    view_count: int = 0
    draft_updated_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    media_value = field_validator("media", mode="before")(_normalise_media)
    utc_times = field_validator(
        "scheduled_at", "takedown_at", "draft_updated_at", "created_at", "updated_at"
    )(_utc)

    @computed_field
    @property
    def status(self) -> str:
        decision = evaluate_visibility(
            self.is_published,
            self.scheduled_at,
            self.takedown_at,
            datetime.now(timezone.utc),
        )
        return decision.state.value


class AnnouncementListResponse(BaseModel):
    """Paginated announcement list."""

    items: list[AnnouncementResponse]
    total: int
    page: int
    page_size: int
    pages: int
    degraded: bool = False


class PublicAnnouncementResponse(BaseModel):
    """Announcement as shown on the public site."""

    id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    category: Optional[CategoryRef] = None
    media: Optional[MediaSchema] = None
    is_pinned: bool
    is_hero: bool
    view_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    media_value = field_validator("media", mode="before")(_normalise_media)
    utc_times = field_validator("created_at", "updated_at")(_utc)

    @computed_field
    @property
    def reading_time(self) -> int:
        return calculate_reading_time(self.content)


class PublicAnnouncementListResponse(BaseModel):
    items: list[PublicAnnouncementResponse]
    total: int
    page: int
    page_size: int
    pages: int


class FeaturedAnnouncementsResponse(BaseModel):
    """Hero and pinned announcements for the home page."""

    hero: list[PublicAnnouncementResponse]
    pinned: list[PublicAnnouncementResponse]


class VisibilityResponse(BaseModel):
    """Effective visibility of an announcement at one instant."""

    announcement_id: str
    at: datetime
    visible: bool
    reason: str
    state: str


class DraftRequest(BaseModel):
    draft_content: str


class DraftResponse(BaseModel):
    announcement_id: str
    draft_content: Optional[str] = None
    draft_updated_at: Optional[datetime] = None

    utc_times = field_validator("draft_updated_at")(_utc)


class BulkActionRequest(BaseModel):
    """Publish, unpublish or delete up to 100 announcements."""

    ids: list[str] = Field(..., min_length=1, max_length=BULK_MAX_IDS)
    action: BulkAction


class BulkActionResponse(BaseModel):
    action: BulkAction
    affected: int
    missing: list[str] = []


# ============================================================================
# Revision Schemas
# ============================================================================


class RevisionResponse(BaseModel):
    """Lightweight revision item for list endpoints (no content body)."""

    id: str
    announcement_id: str
    version: int
    title: str
    change_type: str
    change_summary: Optional[str] = None
    author_id: Optional[str] = None
    author: Optional[UserSummary] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    utc_times = field_validator("created_at")(_utc)


class RevisionDetailResponse(RevisionResponse):
    """Full revision snapshot."""

    content: str
    excerpt: Optional[str] = None
    image_path: Optional[str] = None


class RevisionListResponse(BaseModel):
    """Paginated list of revisions, newest first."""

    items: list[RevisionResponse]
    total: int
    limit: int
    offset: int
    degraded: bool = False


class RevisionCompareResponse(BaseModel):
    revision_a: RevisionDetailResponse
    revision_b: RevisionDetailResponse
    changed_fields: list[str]
    changes: dict[str, bool]


class RestoreResponse(BaseModel):
    """Result of restoring an announcement to an earlier revision."""

    message: str
    announcement: AnnouncementResponse
    revision: RevisionResponse
    restored_from_version: int
    revision_count: int
