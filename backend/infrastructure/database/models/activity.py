"""
Activity log model.
"""

from enum import Enum
from typing import Optional
from uuid import uuid4

from sqlalchemy import ForeignKey, Index, JSON, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class ActivityAction(str, Enum):
    """Activity log action types."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    PUBLISH = "PUBLISH"
    UNPUBLISH = "UNPUBLISH"
    RESTORE = "RESTORE"
    BULK_DELETE = "BULK_DELETE"
    BULK_PUBLISH = "BULK_PUBLISH"
    BULK_UNPUBLISH = "BULK_UNPUBLISH"
    SCHEDULER_SWEEP = "SCHEDULER_SWEEP"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"


class EntityType(str, Enum):
    """Activity log target types."""

    ANNOUNCEMENT = "ANNOUNCEMENT"
    CATEGORY = "CATEGORY"
    SUBSCRIBER = "SUBSCRIBER"


class ActivityLog(Base, TimestampMixin):
    """Who did what to which record."""

    __tablename__ = "activity_logs"

    # Primary key
    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    # Actor; NULL for system actions and anonymous visitors
    user_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    details: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    """
    Structure (varies by action):
    {
        "title": "Quarterly results",
        "fields": ["title", "content"],
        "ids": ["...", "..."],
        "count": 3
    }
    """

    ip_address: Mapped[Optional[str]] = mapped_column(String(45), nullable=True)  # IPv6 max length

    user: Mapped[Optional["User"]] = relationship("User", lazy="joined")

    __table_args__ = (
        Index("ix_activity_logs_entity", "entity_type", "entity_id"),
        Index("ix_activity_logs_created", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action}, entity={self.entity_type})>"
