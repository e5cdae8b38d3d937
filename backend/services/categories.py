"""
Category service.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import AlreadyExistsError, CategoryInUseError, ContentValidationError, NotFoundError
from core.text import slugify
from infrastructure.database.models.activity import ActivityAction, EntityType
from infrastructure.database.models.content import Announcement, Category
from services.activity_log import ActivityLogService

logger = logging.getLogger(__name__)

DEFAULT_COLOR = "#dc2626"


class CategoryService:
    """CRUD for announcement categories."""

    def __init__(self, db: AsyncSession, ip_address: Optional[str] = None):
        self.db = db
        self.activity = ActivityLogService(db, ip_address=ip_address)

    async def list_with_counts(self) -> List[Tuple[Category, int]]:
        """All categories in display order with their announcement counts."""
        counts = (
            select(Announcement.category_id, func.count(Announcement.id).label("count"))
            .group_by(Announcement.category_id)
            .subquery()
        )
        result = await self.db.execute(
            select(Category, func.coalesce(counts.c.count, 0))
            .outerjoin(counts, counts.c.category_id == Category.id)
            .order_by(Category.sort_order, Category.name)
        )
        return [(category, count) for category, count in result.all()]

    async def get(self, category_id: str) -> Category:
        category = await self.db.get(Category, category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    async def _slug_for(self, name: str, exclude_id: Optional[str] = None) -> str:
        slug = slugify(name)
        if not slug:
            raise ContentValidationError("Category name must contain letters or digits")
        query = select(Category.id).where(Category.slug == slug)
        if exclude_id:
            query = query.where(Category.id != exclude_id)
        result = await self.db.execute(query)
        if result.scalar_one_or_none() is not None:
            raise AlreadyExistsError("Category with this name already exists")
        return slug

    async def create(
        self,
        name: str,
        actor_id: Optional[str],
        color: Optional[str] = None,
    ) -> Category:
        name = name.strip()
        slug = await self._slug_for(name)

        # New categories go to the end of the list
        max_order = await self.db.execute(select(func.max(Category.sort_order)))
        sort_order = (max_order.scalar() or 0) + 1

        category = Category(
            name=name,
            slug=slug,
            color=color or DEFAULT_COLOR,
            sort_order=sort_order,
        )
        self.db.add(category)
        await self.db.flush()

        self.activity.log(
            ActivityAction.CREATE,
            EntityType.CATEGORY,
            entity_id=category.id,
            user_id=actor_id,
            details={"name": name},
        )
        await self.db.flush()
        return category

    async def update(
        self,
        category_id: str,
        actor_id: Optional[str],
        name: Optional[str] = None,
        color: Optional[str] = None,
        sort_order: Optional[int] = None,
    ) -> Category:
        category = await self.get(category_id)

        if name is not None and name.strip() != category.name:
            category.name = name.strip()
            category.slug = await self._slug_for(category.name, exclude_id=category.id)
        if color is not None:
            category.color = color
        if sort_order is not None:
            category.sort_order = sort_order

        self.activity.log(
            ActivityAction.UPDATE,
            EntityType.CATEGORY,
            entity_id=category.id,
            user_id=actor_id,
            details={"name": category.name},
        )
        await self.db.flush()
        return category

    async def delete(self, category_id: str, actor_id: Optional[str]) -> None:
        """Delete an empty category."""
        category = await self.get(category_id)

        result = await self.db.execute(
            select(func.count(Announcement.id)).where(Announcement.category_id == category_id)
        )
        in_use = result.scalar() or 0
        if in_use:
            raise CategoryInUseError(in_use)

        self.activity.log(
            ActivityAction.DELETE,
            EntityType.CATEGORY,
            entity_id=category.id,
            user_id=actor_id,
            details={"name": category.name},
        )
        await self.db.delete(category)
        await self.db.flush()
        logger.info("Category %s deleted", category_id)
