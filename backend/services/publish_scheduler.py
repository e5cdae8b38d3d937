"""
Publish scheduler service.

Background sweep that folds elapsed schedule and takedown timestamps into
the stored publish flag.  Public reads already evaluate visibility on the
fly, so a sweep never changes whether an announcement is shown; it only
keeps the stored state tidy and records automatic takedowns in the
revision history.
"""

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.domain.announcement import ChangeType, as_utc
from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.connection import async_session_maker
from infrastructure.database.models.activity import ActivityAction, EntityType
from infrastructure.database.models.content import Announcement
from services.activity_log import ActivityLogService
from services.revision_ledger import RevisionLedger

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    published: int = 0
    taken_down: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


async def sweep_schedules(
    db: AsyncSession,
    now: Optional[datetime] = None,
    settings: Optional[Settings] = None,
) -> SweepResult:
    """
    Apply elapsed takedowns and schedules.  Flushes; the caller commits.

    - ``takedown_at <= now``: unpublish and clear ``takedown_at``; an
      UNPUBLISH revision with no actor is recorded if the row was published.
    - ``scheduled_at <= now``: clear ``scheduled_at``.
    """
    settings = settings or get_settings()
    now = as_utc(now or datetime.now(timezone.utc))
    ledger = RevisionLedger(db, settings)
    result = SweepResult()

    takedowns = await db.execute(
        select(Announcement)
        .where(Announcement.takedown_at.is_not(None), Announcement.takedown_at <= now)
        .with_for_update(of=Announcement)
        .execution_options(populate_existing=True)
    )
    for announcement in takedowns.scalars().all():
        was_published = announcement.is_published
        announcement.is_published = False
        announcement.takedown_at = None
        await db.flush()
        if was_published:
            await ledger.record(
                announcement.id,
                announcement.snapshot(),
                ChangeType.UNPUBLISH,
                None,
                change_summary="Taken down on schedule",
            )
            result.taken_down += 1

    schedules = await db.execute(
        select(Announcement)
        .where(Announcement.scheduled_at.is_not(None), Announcement.scheduled_at <= now)
        .with_for_update(of=Announcement)
        .execution_options(populate_existing=True)
    )
    for announcement in schedules.scalars().all():
        announcement.scheduled_at = None
        if announcement.is_published:
            result.published += 1

    if result.published or result.taken_down:
        ActivityLogService(db).log(
            ActivityAction.SCHEDULER_SWEEP,
            EntityType.ANNOUNCEMENT,
            details=result.as_dict(),
        )
    await db.flush()
    return result


class PublishSchedulerService:
    """Runs :func:`sweep_schedules` on an interval."""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory or async_session_maker
        self.check_interval = self.settings.scheduler_interval_seconds
        self.is_running = False

    async def start(self):
        """Start the scheduler background loop."""
        if self.is_running:
            logger.warning("Publish scheduler is already running")
            return

        self.is_running = True
        logger.info(
            "Publish scheduler started - sweeping every %d seconds", self.check_interval
        )

        while self.is_running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Publish scheduler error: %s", e, exc_info=True)

            await asyncio.sleep(self.check_interval)

    async def stop(self):
        """Stop the scheduler."""
        if not self.is_running:
            return

        self.is_running = False
        logger.info("Publish scheduler stopped")

    async def run_once(self, now: Optional[datetime] = None) -> SweepResult:
        """One sweep in its own session and transaction."""
        async with self.session_factory() as db:
            try:
                result = await sweep_schedules(db, now, self.settings)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        if result.published or result.taken_down:
            logger.info(
                "Scheduler sweep: %d published, %d taken down",
                result.published,
                result.taken_down,
            )
        return result
