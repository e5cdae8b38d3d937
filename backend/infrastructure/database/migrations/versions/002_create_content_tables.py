"""Create categories, announcements and announcement_revisions tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-05

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

SINGLE_MEDIA_CHECK = (
    "(media_kind = 'none' AND image_path IS NULL AND video_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'image' AND image_path IS NOT NULL"
    " AND video_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'video' AND video_path IS NOT NULL"
    " AND image_path IS NULL AND youtube_url IS NULL)"
    " OR (media_kind = 'youtube' AND youtube_url IS NOT NULL"
    " AND image_path IS NULL AND video_path IS NULL)"
)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "categories",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(120), nullable=False),
        sa.Column("color", sa.String(20), nullable=False, server_default="#dc2626"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_categories_slug", "categories", ["slug"], unique=True)

    op.create_table(
        "announcements",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("slug", sa.String(500), nullable=False, unique=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column(
            "category_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("media_kind", sa.String(20), nullable=False, server_default="none"),
        sa.Column("image_path", sa.String(500), nullable=True),
        sa.Column("video_path", sa.String(500), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_pinned", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("is_hero", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("takedown_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("draft_content", sa.Text, nullable=True),
        sa.Column("draft_updated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(SINGLE_MEDIA_CHECK, name="ck_announcements_single_media"),
    )
    op.create_index("ix_announcements_category_id", "announcements", ["category_id"])
    op.create_index("ix_announcements_author_id", "announcements", ["author_id"])
    op.create_index(
        "ix_announcements_publish_window",
        "announcements",
        ["is_published", "scheduled_at", "takedown_at"],
    )
    op.create_index(
        "ix_announcements_pinned_created",
        "announcements",
        ["is_pinned", "created_at"],
    )

    op.create_table(
        "announcement_revisions",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "announcement_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("announcements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("version", sa.Integer, nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("excerpt", sa.Text, nullable=True),
        sa.Column("image_path", sa.String(500), nullable=True),
        sa.Column("change_type", sa.String(20), nullable=False),
        sa.Column("change_summary", sa.String(500), nullable=True),
        sa.Column(
            "author_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "announcement_id", "version", name="uq_announcement_revisions_version"
        ),
    )
    op.create_index(
        "ix_announcement_revisions_announcement_id",
        "announcement_revisions",
        ["announcement_id"],
    )
    op.create_index(
        "ix_announcement_revisions_author_id",
        "announcement_revisions",
        ["author_id"],
    )


def downgrade() -> None:
    op.drop_index("ix_announcement_revisions_author_id", table_name="announcement_revisions")
    op.drop_index("ix_announcement_revisions_announcement_id", table_name="announcement_revisions")
    op.drop_table("announcement_revisions")
    op.drop_index("ix_announcements_pinned_created", table_name="announcements")
    op.drop_index("ix_announcements_publish_window", table_name="announcements")
    op.drop_index("ix_announcements_author_id", table_name="announcements")
    op.drop_index("ix_announcements_category_id", table_name="announcements")
    op.drop_table("announcements")
    op.drop_index("ix_categories_slug", table_name="categories")
    op.drop_table("categories")
