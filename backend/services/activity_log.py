"""
Activity log service.

Append-only audit trail of editorial actions.  Entries are added to the
caller's session and committed with the change they describe.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.announcement import as_utc
from infrastructure.database.models.activity import ActivityAction, ActivityLog, EntityType


class ActivityLogService:
    """Writes and queries activity log entries."""

    def __init__(self, db: AsyncSession, ip_address: Optional[str] = None):
        self.db = db
        self.ip_address = ip_address

    def log(
        self,
        action: ActivityAction,
        entity_type: EntityType,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> ActivityLog:
        entry = ActivityLog(
            user_id=user_id,
            action=ActivityAction(action).value,
            entity_type=EntityType(entity_type).value,
            entity_id=entity_id,
            details=details,
            ip_address=self.ip_address,
        )
        self.db.add(entry)
        return entry

    async def list_entries(
        self,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> Tuple[List[ActivityLog], int]:
        """Entries newest first with optional filters."""
        conditions = []
        if action:
            conditions.append(ActivityLog.action == action)
        if entity_type:
            conditions.append(ActivityLog.entity_type == entity_type)
        if entity_id:
            conditions.append(ActivityLog.entity_id == entity_id)
        if user_id:
            conditions.append(ActivityLog.user_id == user_id)
        if since:
            conditions.append(ActivityLog.created_at >= as_utc(since))

        total_result = await self.db.execute(
            select(func.count(ActivityLog.id)).where(*conditions)
        )
        total = total_result.scalar() or 0

        result = await self.db.execute(
            select(ActivityLog)
            .where(*conditions)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return list(result.scalars().all()), total
