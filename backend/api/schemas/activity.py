"""
Activity log schemas.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from .auth import UserSummary


class ActivityActor(UserSummary):
    """Who performed a logged action."""

    email: str


class ActivityLogResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    user: Optional[ActivityActor] = None
    action: str
    entity_type: str
    entity_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogListResponse(BaseModel):
    items: list[ActivityLogResponse]
    total: int
    page: int
    page_size: int
    pages: int
