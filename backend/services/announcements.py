"""
Announcement service.

Create, edit, publish and delete announcements, and query them for the
admin console and the public site.  Every change to the editable fields or
the publish flag is recorded through the revision ledger in the same
transaction; callers commit.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.announcement import ChangeType, RevisionSnapshot, as_utc, publish_transition
from core.domain.media import Media
from core.exceptions import ContentValidationError, NotFoundError
from core.text import escape_like, generate_excerpt, slugify
from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.models.activity import ActivityAction, EntityType
from infrastructure.database.models.content import Announcement, Category
from services.activity_log import ActivityLogService
from services.revision_ledger import RestoreResult, RevisionLedger

logger = logging.getLogger(__name__)

BULK_MAX_IDS = 100

# Fields an update may touch; anything else in the change set is rejected.
UPDATABLE_FIELDS = frozenset(
    {
        "title",
        "content",
        "excerpt",
        "category_id",
        "media",
        "is_published",
        "is_pinned",
        "is_hero",
        "scheduled_at",
        "takedown_at",
    }
)


class AnnouncementStatus(str, Enum):
    """Admin listing filter; mirrors the lifecycle states."""

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"
    TAKEN_DOWN = "taken_down"


class BulkAction(str, Enum):
    PUBLISH = "publish"
    UNPUBLISH = "unpublish"
    DELETE = "delete"


@dataclass
class BulkResult:
    action: BulkAction
    affected: int
    missing: List[str]


def status_condition(status: AnnouncementStatus, now: datetime):
    """SQL filter for one lifecycle state, consistent with evaluate_visibility."""
    now = as_utc(now)
    taken_down = and_(Announcement.takedown_at.is_not(None), Announcement.takedown_at <= now)
    not_taken_down = or_(Announcement.takedown_at.is_(None), Announcement.takedown_at > now)
    pending = and_(Announcement.scheduled_at.is_not(None), Announcement.scheduled_at > now)
    not_pending = or_(Announcement.scheduled_at.is_(None), Announcement.scheduled_at <= now)

    if status == AnnouncementStatus.TAKEN_DOWN:
        return taken_down
    if status == AnnouncementStatus.SCHEDULED:
        return and_(not_taken_down, pending)
    if status == AnnouncementStatus.PUBLISHED:
        return Announcement.visible_at(now)
    return and_(not_taken_down, not_pending, Announcement.is_published.is_(False))


class AnnouncementService:
    """Editorial operations on announcements."""

    def __init__(
        self,
        db: AsyncSession,
        settings: Optional[Settings] = None,
        ip_address: Optional[str] = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger = RevisionLedger(db, self.settings)
        self.activity = ActivityLogService(db, ip_address=ip_address)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    async def get(self, announcement_id: str) -> Announcement:
        result = await self.db.execute(
            select(Announcement)
            .where(Announcement.id == announcement_id)
            .execution_options(populate_existing=True)
        )
        announcement = result.scalar_one_or_none()
        if not announcement:
            raise NotFoundError("Announcement", announcement_id)
        return announcement

    async def _ensure_category(self, category_id: str) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    async def _unique_slug(self, title: str, exclude_id: Optional[str] = None) -> str:
        base = slugify(title) or "announcement"
        slug = base
        suffix = 1
        while True:
            query = select(Announcement.id).where(Announcement.slug == slug)
            if exclude_id:
                query = query.where(Announcement.id != exclude_id)
            result = await self.db.execute(query)
            if result.scalar_one_or_none() is None:
                return slug
            slug = f"{base}-{suffix}"
            suffix += 1

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def create(
        self,
        actor_id: Optional[str],
        title: str,
        content: str,
        category_id: str,
        excerpt: Optional[str] = None,
        media: Optional[Media] = None,
        is_published: bool = False,
        is_pinned: bool = False,
        is_hero: bool = False,
        scheduled_at: Optional[datetime] = None,
        takedown_at: Optional[datetime] = None,
    ) -> Announcement:
        """Create an announcement and its first (CREATE) revision."""
        title = (title or "").strip()
        RevisionSnapshot(title=title, content=content).validate()
        await self._ensure_category(category_id)

        announcement = Announcement(
            title=title,
            slug=await self._unique_slug(title),
            content=content,
            excerpt=excerpt or generate_excerpt(content, self.settings.excerpt_length),
            category_id=category_id,
            author_id=actor_id,
            is_published=is_published,
            is_pinned=is_pinned,
            is_hero=is_hero,
            scheduled_at=as_utc(scheduled_at),
            takedown_at=as_utc(takedown_at),
        )
        announcement.apply_media(media)
        self.db.add(announcement)
        await self.db.flush()

        await self.ledger.record(
            announcement.id,
            announcement.snapshot(),
            ChangeType.CREATE,
            actor_id,
            change_summary="Created",
        )
        self.activity.log(
            ActivityAction.CREATE,
            EntityType.ANNOUNCEMENT,
            entity_id=announcement.id,
            user_id=actor_id,
            details={"title": announcement.title},
        )
        await self.db.flush()

        logger.info("Announcement created", extra={"announcement_id": announcement.id})
        return await self.get(announcement.id)

    async def update(
        self,
        announcement_id: str,
        changes: Dict[str, Any],
        actor_id: Optional[str],
    ) -> Announcement:
        """
        Apply a partial update.

        ``changes`` holds only the fields the caller supplied; an explicit
        ``None`` clears a nullable field.  A revision is recorded when the
        snapshot fields or the publish flag changed.
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ContentValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        announcement = await self.ledger.lock_announcement(announcement_id)
        before = announcement.snapshot()
        was_published = announcement.is_published

        if "title" in changes:
            title = (changes["title"] or "").strip()
            if title != announcement.title:
                announcement.title = title
                announcement.slug = await self._unique_slug(title, exclude_id=announcement.id)

        if "content" in changes:
            content = changes["content"]
            if content is None:
                raise ContentValidationError("Content must not be null")
            if content != announcement.content:
                announcement.content = content
                if "excerpt" not in changes:
                    announcement.excerpt = generate_excerpt(content, self.settings.excerpt_length)

        if "excerpt" in changes:
            announcement.excerpt = changes["excerpt"] or generate_excerpt(
                announcement.content, self.settings.excerpt_length
            )

        if "category_id" in changes and changes["category_id"] != announcement.category_id:
            if changes["category_id"] is None:
                raise ContentValidationError("Category is required")
            await self._ensure_category(changes["category_id"])
            announcement.category_id = changes["category_id"]

        if "media" in changes:
            announcement.apply_media(changes["media"])

        for flag in ("is_published", "is_pinned", "is_hero"):
            if flag in changes and changes[flag] is not None:
                setattr(announcement, flag, bool(changes[flag]))

        for field in ("scheduled_at", "takedown_at"):
            if field in changes:
                setattr(announcement, field, as_utc(changes[field]))

        after = announcement.snapshot()
        after.validate()
        announcement.updated_at = datetime.now(timezone.utc)
        await self.db.flush()

        changed = after.changed_fields(before)
        transition = publish_transition(was_published, announcement.is_published)
        if transition is not None:
            summary = "Published" if transition == ChangeType.PUBLISH else "Unpublished"
            if changed:
                summary += f"; edited {', '.join(changed)}"
            await self.ledger.record(announcement.id, after, transition, actor_id, summary)
        elif changed:
            await self.ledger.record(
                announcement.id,
                after,
                ChangeType.EDIT,
                actor_id,
                f"Edited {', '.join(changed)}",
            )

        if transition == ChangeType.PUBLISH:
            action = ActivityAction.PUBLISH
        elif transition == ChangeType.UNPUBLISH:
            action = ActivityAction.UNPUBLISH
        else:
            action = ActivityAction.UPDATE
        self.activity.log(
            action,
            EntityType.ANNOUNCEMENT,
            entity_id=announcement.id,
            user_id=actor_id,
            details={"title": announcement.title, "fields": sorted(changes)},
        )
        await self.db.flush()

        return await self.get(announcement.id)

    async def set_published(
        self,
        announcement_id: str,
        is_published: bool,
        actor_id: Optional[str],
    ) -> Announcement:
        return await self.update(announcement_id, {"is_published": is_published}, actor_id)

    async def delete(self, announcement_id: str, actor_id: Optional[str]) -> None:
        """Hard-delete an announcement; its revisions cascade in the database."""
        announcement = await self.get(announcement_id)
        self.activity.log(
            ActivityAction.DELETE,
            EntityType.ANNOUNCEMENT,
            entity_id=announcement.id,
            user_id=actor_id,
            details={"title": announcement.title},
        )
        await self.db.delete(announcement)
        await self.db.flush()
        logger.info("Announcement deleted", extra={"announcement_id": announcement_id})

    async def bulk(
        self,
        ids: List[str],
        action: BulkAction,
        actor_id: Optional[str],
    ) -> BulkResult:
        """Publish, unpublish or delete several announcements at once."""
        action = BulkAction(action)
        ids = list(dict.fromkeys(ids))
        if not ids:
            raise ContentValidationError("No announcement ids given")
        if len(ids) > BULK_MAX_IDS:
            raise ContentValidationError(f"At most {BULK_MAX_IDS} announcements per bulk action")

        result = await self.db.execute(select(Announcement.id).where(Announcement.id.in_(ids)))
        existing = set(result.scalars().all())
        found = [announcement_id for announcement_id in ids if announcement_id in existing]
        missing = [announcement_id for announcement_id in ids if announcement_id not in existing]

        for announcement_id in found:
            if action == BulkAction.DELETE:
                announcement = await self.get(announcement_id)
                await self.db.delete(announcement)
            else:
                announcement = await self.ledger.lock_announcement(announcement_id)
                target = action == BulkAction.PUBLISH
                if announcement.is_published == target:
                    continue
                announcement.is_published = target
                announcement.updated_at = datetime.now(timezone.utc)
                await self.db.flush()
                await self.ledger.record(
                    announcement_id,
                    announcement.snapshot(),
                    ChangeType.PUBLISH if target else ChangeType.UNPUBLISH,
                    actor_id,
                    "Published (bulk)" if target else "Unpublished (bulk)",
                )

        bulk_actions = {
            BulkAction.PUBLISH: ActivityAction.BULK_PUBLISH,
            BulkAction.UNPUBLISH: ActivityAction.BULK_UNPUBLISH,
            BulkAction.DELETE: ActivityAction.BULK_DELETE,
        }
        self.activity.log(
            bulk_actions[action],
            EntityType.ANNOUNCEMENT,
            user_id=actor_id,
            details={"ids": found, "count": len(found)},
        )
        await self.db.flush()

        logger.info("Bulk %s applied to %d announcements", action.value, len(found))
        return BulkResult(action=action, affected=len(found), missing=missing)

    async def restore(
        self,
        announcement_id: str,
        revision_id: str,
        actor_id: Optional[str],
    ) -> RestoreResult:
        """Restore a revision through the ledger and log the action."""
        result = await self.ledger.restore(announcement_id, revision_id, actor_id)
        self.activity.log(
            ActivityAction.RESTORE,
            EntityType.ANNOUNCEMENT,
            entity_id=announcement_id,
            user_id=actor_id,
            details={
                "restored_from_version": result.restored_from_version,
                "version": result.revision.version,
            },
        )
        await self.db.flush()
        result.announcement = await self.get(announcement_id)
        return result

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------

    async def save_draft(self, announcement_id: str, draft_content: str) -> Announcement:
        """Store autosaved content without touching the live fields or history."""
        announcement = await self.get(announcement_id)
        announcement.draft_content = draft_content
        announcement.draft_updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return announcement

    async def discard_draft(self, announcement_id: str) -> Announcement:
        announcement = await self.get(announcement_id)
        announcement.draft_content = None
        announcement.draft_updated_at = None
        await self.db.flush()
        return announcement

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _page(self, conditions: list, order_by: tuple, page: int, page_size: int):
        total_result = await self.db.execute(
            select(func.count(Announcement.id)).where(*conditions)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(Announcement)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    @staticmethod
    def _search_condition(q: str):
        pattern = f"%{escape_like(q)}%"
        return or_(
            Announcement.title.ilike(pattern, escape="\\"),
            Announcement.content.ilike(pattern, escape="\\"),
        )

    async def list_admin(
        self,
        now: datetime,
        q: Optional[str] = None,
        category_id: Optional[str] = None,
        status: Optional[AnnouncementStatus] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Tuple[List[Announcement], int]:
        conditions = []
        if q:
            conditions.append(self._search_condition(q))
        if category_id:
            conditions.append(Announcement.category_id == category_id)
        if status:
            conditions.append(status_condition(AnnouncementStatus(status), now))

        return await self._page(
            conditions,
            (Announcement.created_at.desc(), Announcement.id),
            page,
            page_size,
        )

    async def list_public(
        self,
        now: datetime,
        category_slug: Optional[str] = None,
        q: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Tuple[List[Announcement], int]:
        """Visible announcements, pinned first then newest."""
        conditions = [Announcement.visible_at(now)]
        if category_slug:
            conditions.append(
                Announcement.category_id.in_(
                    select(Category.id).where(Category.slug == category_slug)
                )
            )
        if q:
            conditions.append(self._search_condition(q))

        return await self._page(
            conditions,
            (Announcement.is_pinned.desc(), Announcement.created_at.desc(), Announcement.id),
            page,
            page_size or self.settings.public_page_size,
        )

    async def get_public(self, slug: str, now: datetime) -> Announcement:
        """A visible announcement by slug; hidden ones are reported as missing."""
        result = await self.db.execute(
            select(Announcement)
            .where(Announcement.slug == slug, Announcement.visible_at(now))
            .execution_options(populate_existing=True)
        )
        announcement = result.scalar_one_or_none()
        if not announcement:
            raise NotFoundError("Announcement", slug)
        return announcement

    async def featured(self, now: datetime, limit: int = 5) -> Tuple[List[Announcement], List[Announcement]]:
        """Visible hero and pinned announcements, newest first."""
        order = (Announcement.created_at.desc(), Announcement.id)
        hero_result = await self.db.execute(
            select(Announcement)
            .where(Announcement.visible_at(now), Announcement.is_hero.is_(True))
            .order_by(*order)
            .limit(limit)
        )
        pinned_result = await self.db.execute(
            select(Announcement)
            .where(Announcement.visible_at(now), Announcement.is_pinned.is_(True))
            .order_by(*order)
            .limit(limit)
        )
        return list(hero_result.scalars().all()), list(pinned_result.scalars().all())

    async def record_view(self, announcement_id: str) -> None:
        """Increment the view counter and commit; failures are logged, never raised."""
        try:
            await self.db.execute(
                update(Announcement)
                .where(Announcement.id == announcement_id)
                .values(view_count=Announcement.view_count + 1)
                .execution_options(synchronize_session=False)
            )
            await self.db.commit()
        except Exception as e:
            logger.warning(
                "View count update failed: %s",
                e,
                extra={"announcement_id": announcement_id},
            )
            try:
                await self.db.rollback()
            except Exception:
                logger.debug("Rollback after view count failure also failed", exc_info=True)
