"""
Revision ledger service.

Append-only history of announcement snapshots.  Every revision stores the
state of the editable fields *after* the change it records, so the newest
revision always mirrors the live row.  Versions are allocated per
announcement as max(version) + 1 while holding a row lock on the parent
announcement; the unique (announcement_id, version) constraint is the
backstop, and a lost race is retried inside a savepoint.

The ledger only flushes.  The caller owns the transaction and commits the
announcement change and its revision together.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.announcement import ChangeType, RevisionSnapshot
from core.exceptions import ConflictError, ContentValidationError, NotFoundError
from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.models.content import Announcement, AnnouncementRevision

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    """Outcome of restoring an announcement to an earlier revision."""

    announcement: Announcement
    revision: AnnouncementRevision
    restored_from_version: int
    revision_count: int


class RevisionLedger:
    """Records, lists and restores announcement revisions."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        max_attempts: Optional[int] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        if max_attempts is None:
            max_attempts = self.settings.revision_max_retries
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts

    async def lock_announcement(self, announcement_id: str) -> Announcement:
        """Load an announcement holding a row lock until the transaction ends."""
        result = await self.db.execute(
            select(Announcement)
            .where(Announcement.id == announcement_id)
            .with_for_update(of=Announcement)
            .execution_options(populate_existing=True)
        )
        announcement = result.scalar_one_or_none()
        if not announcement:
            raise NotFoundError("Announcement", announcement_id)
        return announcement

    async def _ensure_announcement(self, announcement_id: str) -> None:
        result = await self.db.execute(
            select(Announcement.id).where(Announcement.id == announcement_id)
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Announcement", announcement_id)

    async def latest_version(self, announcement_id: str) -> int:
        result = await self.db.execute(
            select(func.max(AnnouncementRevision.version)).where(
                AnnouncementRevision.announcement_id == announcement_id
            )
        )
        return result.scalar() or 0

    async def latest_revision(self, announcement_id: str) -> Optional[AnnouncementRevision]:
        result = await self.db.execute(
            select(AnnouncementRevision)
            .where(AnnouncementRevision.announcement_id == announcement_id)
            .order_by(AnnouncementRevision.version.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def count(self, announcement_id: str) -> int:
        result = await self.db.execute(
            select(func.count(AnnouncementRevision.id)).where(
                AnnouncementRevision.announcement_id == announcement_id
            )
        )
        return result.scalar() or 0

    async def record(
        self,
        announcement_id: str,
        snapshot: RevisionSnapshot,
        change_type: ChangeType,
        actor_id: Optional[str],
        change_summary: Optional[str] = None,
    ) -> AnnouncementRevision:
        """
        Append a revision for ``announcement_id``.

        The first revision of an announcement is always CREATE; asking for
        CREATE once history exists is rejected.

        Raises:
            NotFoundError: announcement does not exist
            ContentValidationError: snapshot is malformed or CREATE is misused
            ConflictError: version allocation lost every retry
        """
        snapshot.validate()
        change_type = ChangeType(change_type)

        # Serializes writers per announcement (no-op on SQLite, where
        # BEGIN IMMEDIATE already serializes the whole database).
        await self.lock_announcement(announcement_id)

        last_error: Optional[IntegrityError] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self.db.begin_nested():
                    version = await self.latest_version(announcement_id) + 1
                    if version > 1 and change_type == ChangeType.CREATE:
                        raise ContentValidationError(
                            "Announcement already has history; CREATE is only valid for version 1"
                        )
                    revision_type = ChangeType.CREATE if version == 1 else change_type

                    revision = AnnouncementRevision(
                        announcement_id=announcement_id,
                        version=version,
                        title=snapshot.title,
                        content=snapshot.content,
                        excerpt=snapshot.excerpt,
                        image_path=snapshot.image_path,
                        change_type=revision_type.value,
                        change_summary=change_summary,
                        author_id=actor_id,
                    )
                    self.db.add(revision)
                    await self.db.flush()
            except IntegrityError as e:
                last_error = e
                logger.warning(
                    "Revision version collision (attempt %d/%d)",
                    attempt,
                    self.max_attempts,
                    extra={"announcement_id": announcement_id},
                )
                continue

            logger.info(
                "Recorded %s revision",
                revision_type.value,
                extra={"announcement_id": announcement_id, "version": version},
            )
            return revision

        raise ConflictError(
            f"Could not allocate a revision version after {self.max_attempts} attempts"
        ) from last_error

    async def list_revisions(
        self,
        announcement_id: str,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[AnnouncementRevision], int]:
        """Revisions newest first, plus the total count."""
        await self._ensure_announcement(announcement_id)

        total = await self.count(announcement_id)
        result = await self.db.execute(
            select(AnnouncementRevision)
            .where(AnnouncementRevision.announcement_id == announcement_id)
            .order_by(AnnouncementRevision.version.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_revision(self, announcement_id: str, revision_id: str) -> AnnouncementRevision:
        """A revision that belongs to ``announcement_id``; foreign ids are not found."""
        result = await self.db.execute(
            select(AnnouncementRevision).where(
                AnnouncementRevision.id == revision_id,
                AnnouncementRevision.announcement_id == announcement_id,
            )
        )
        revision = result.scalar_one_or_none()
        if not revision:
            raise NotFoundError("Revision", revision_id)
        return revision

    async def compare(
        self,
        announcement_id: str,
        revision_id_a: str,
        revision_id_b: str,
    ) -> Tuple[AnnouncementRevision, AnnouncementRevision, List[str]]:
        """Two revisions of one announcement and the fields that differ."""
        revision_a = await self.get_revision(announcement_id, revision_id_a)
        revision_b = await self.get_revision(announcement_id, revision_id_b)
        return revision_a, revision_b, revision_a.snapshot().changed_fields(revision_b.snapshot())

    async def restore(
        self,
        announcement_id: str,
        revision_id: str,
        actor_id: Optional[str],
    ) -> RestoreResult:
        """
        Copy a revision's snapshot onto the live announcement.

        Appends a RESTORE revision holding the restored state.  If the live
        row was changed without a matching revision, its current state is
        recorded as an EDIT first so nothing is lost.
        """
        target = await self.get_revision(announcement_id, revision_id)
        announcement = await self.lock_announcement(announcement_id)

        live = announcement.snapshot()
        latest = await self.latest_revision(announcement_id)
        if latest is None or latest.snapshot() != live:
            await self.record(
                announcement_id,
                live,
                ChangeType.EDIT,
                actor_id,
                change_summary="Captured live state before restore",
            )

        announcement.apply_snapshot(target.snapshot())
        await self.db.flush()

        revision = await self.record(
            announcement_id,
            announcement.snapshot(),
            ChangeType.RESTORE,
            actor_id,
            change_summary=f"Restored to version {target.version}",
        )

        return RestoreResult(
            announcement=announcement,
            revision=revision,
            restored_from_version=target.version,
            revision_count=await self.count(announcement_id),
        )
