"""
Service layer for business logic.
"""

from services.activity_log import ActivityLogService
from services.announcements import AnnouncementService, AnnouncementStatus
from services.categories import CategoryService
from services.newsletter import NewsletterService
from services.publish_scheduler import PublishSchedulerService, sweep_schedules
from services.revision_ledger import RevisionLedger

__all__ = [
    "ActivityLogService",
    "AnnouncementService",
    "AnnouncementStatus",
    "CategoryService",
    "NewsletterService",
    "PublishSchedulerService",
    "RevisionLedger",
    "sweep_schedules",
]
