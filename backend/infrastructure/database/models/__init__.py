"""
SQLAlchemy database models.
"""

from .activity import ActivityAction, ActivityLog, EntityType
from .base import Base, TimestampMixin
from .content import Announcement, AnnouncementRevision, Category
from .newsletter import NewsletterSubscriber
from .user import User, UserRole, UserStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "User",
    "UserRole",
    "UserStatus",
    "Category",
    "Announcement",
    "AnnouncementRevision",
    "ActivityLog",
    "ActivityAction",
    "EntityType",
    "NewsletterSubscriber",
]
