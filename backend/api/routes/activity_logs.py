"""
Activity log routes (admin only).
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.schemas.activity import ActivityLogListResponse, ActivityLogResponse
from api.utils import page_count
from infrastructure.database.connection import get_db
from infrastructure.database.models.activity import ActivityAction, EntityType
from infrastructure.database.models.user import User
from services.activity_log import ActivityLogService

router = APIRouter(prefix="/activity-logs", tags=["Activity Log"])


@router.get("", response_model=ActivityLogListResponse)
async def list_activity_logs(
    action: Optional[ActivityAction] = None,
    entity_type: Optional[EntityType] = None,
    entity_id: Optional[str] = None,
    user_id: Optional[str] = None,
    since: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Who did what, newest first."""
    items, total = await ActivityLogService(db).list_entries(
        action=action.value if action else None,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        user_id=user_id,
        since=since,
        page=page,
        page_size=page_size,
    )
    return ActivityLogListResponse(
        items=[ActivityLogResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size),
    )
