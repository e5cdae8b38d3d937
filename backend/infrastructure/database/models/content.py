"""
Content database models: Category, Announcement and AnnouncementRevision.
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    and_,
    event,
    or_,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship, object_session

from core.domain.announcement import (
    RevisionSnapshot,
    VisibilityDecision,
    as_utc,
    evaluate_visibility,
)
from core.domain.media import ImageMedia, Media, MediaKind, UploadedVideoMedia, YouTubeMedia

from .base import Base, TimestampMixin, utcnow


class Category(Base, TimestampMixin):
    """Announcement category."""

    __tablename__ = "categories"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(120), nullable=False, unique=True, index=True)
    color: Mapped[str] = mapped_column(String(20), default="#dc2626", nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    announcements: Mapped[List["Announcement"]] = relationship(
        "Announcement",
        back_populates="category",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug={self.slug})>"


# Exactly the columns of the active media kind may be populated.
_MEDIA_CHECK = (
    "(media_kind = 'none' AND image_path IS NULL AND video_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'image' AND image_path IS NOT NULL"
    " AND video_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'video' AND video_path IS NOT NULL"
    " AND image_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'youtube' AND youtube_url IS NOT NULL"
    " AND image_path IS NULL AND video_path IS NULL)"
)


class Announcement(Base, TimestampMixin):
    """Announcement (news article): the live, editable row."""

    __tablename__ = "announcements"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Media (see core.domain.media); media_kind selects the populated column
    media_kind: Mapped[str] = mapped_column(
        String(20),
        default=MediaKind.NONE.value,
        nullable=False,
    )
    image_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    video_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    youtube_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Placement
    is_published: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_pinned: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_hero: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Scheduling
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    takedown_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    view_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Autosave buffer, never part of the revision history
    draft_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    draft_updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    category: Mapped["Category"] = relationship(
        "Category",
        back_populates="announcements",
        lazy="joined",
    )
    author: Mapped[Optional["User"]] = relationship("User", lazy="joined")
    revisions: Mapped[List["AnnouncementRevision"]] = relationship(
        "AnnouncementRevision",
        back_populates="announcement",
        passive_deletes="all",
        order_by="AnnouncementRevision.version",
    )

    __table_args__ = (
        CheckConstraint(_MEDIA_CHECK, name="ck_announcements_single_media"),
        Index("ix_announcements_publish_window", "is_published", "scheduled_at", "takedown_at"),
        Index("ix_announcements_pinned_created", "is_pinned", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Announcement(id={self.id}, title={self.title[:30]}, published={self.is_published})>"

    # ------------------------------------------------------------------
    # Media
    # ------------------------------------------------------------------

    @property
    def media(self) -> Optional[Media]:
        kind = MediaKind(self.media_kind)
        if kind == MediaKind.IMAGE:
            return ImageMedia(path=self.image_path)
        if kind == MediaKind.VIDEO:
            return UploadedVideoMedia(path=self.video_path)
        if kind == MediaKind.YOUTUBE:
            return YouTubeMedia(url=self.youtube_url)
        return None

    def apply_media(self, media: Optional[Media]) -> None:
        """Make ``media`` the single active attachment, clearing the others."""
        self.image_path = media.path if isinstance(media, ImageMedia) else None
        self.video_path = media.path if isinstance(media, UploadedVideoMedia) else None
        self.youtube_url = media.url if isinstance(media, YouTubeMedia) else None
        self.media_kind = media.kind.value if media is not None else MediaKind.NONE.value

    # ------------------------------------------------------------------
    # Revision snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> RevisionSnapshot:
        return RevisionSnapshot.of(self)

    def apply_snapshot(self, snapshot: RevisionSnapshot) -> None:
        """Copy a snapshot's editable fields onto the live row."""
        self.title = snapshot.title
        self.content = snapshot.content
        self.excerpt = snapshot.excerpt
        if snapshot.image_path:
            self.apply_media(ImageMedia(path=snapshot.image_path))
        elif self.media_kind == MediaKind.IMAGE.value:
            self.apply_media(None)
        self.updated_at = utcnow()

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def visibility(self, now: datetime) -> VisibilityDecision:
        return evaluate_visibility(self.is_published, self.scheduled_at, self.takedown_at, now)

    @classmethod
    def visible_at(cls, now: datetime):
        """SQL predicate equivalent to :meth:`visibility` being visible."""
        now = as_utc(now)
        return and_(
            cls.is_published.is_(True),
            or_(cls.takedown_at.is_(None), cls.takedown_at > now),
            or_(cls.scheduled_at.is_(None), cls.scheduled_at <= now),
        )


class AnnouncementRevision(Base):
    """Immutable snapshot of an announcement's editable fields."""

    __tablename__ = "announcement_revisions"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    announcement_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("announcements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Snapshot
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    excerpt: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    change_type: Mapped[str] = mapped_column(String(20), nullable=False)
    change_summary: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    author_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        nullable=False,
    )

    announcement: Mapped["Announcement"] = relationship(
        "Announcement",
        back_populates="revisions",
    )
    author: Mapped[Optional["User"]] = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("announcement_id", "version", name="uq_announcement_revisions_version"),
    )

    def __repr__(self) -> str:
        return (
            f"<AnnouncementRevision(announcement_id={self.announcement_id}, "
            f"version={self.version}, change_type={self.change_type})>"
        )

    def snapshot(self) -> RevisionSnapshot:
        return RevisionSnapshot.of(self)


@event.listens_for(AnnouncementRevision, "before_update")
def _refuse_revision_update(mapper, connection, target):
    session = object_session(target)
    if session is not None and session.is_modified(target, include_collections=False):
        raise RuntimeError("Announcement revisions are append-only")


@event.listens_for(AnnouncementRevision, "before_delete")
def _refuse_revision_delete(mapper, connection, target):
    raise RuntimeError("Announcement revisions are append-only")
