"""
Newsletter subscription schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SubscribeRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)


class SubscribeResponse(BaseModel):
    """Outcome of a subscribe call.

    The unsubscribe token is only returned when a subscription was created or
    reactivated, never for an address that was already subscribed.
    """

    message: str
    status: str
    unsubscribe_token: Optional[str] = None


class UnsubscribeRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)


class SubscriberResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    is_active: bool
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class SubscriberListResponse(BaseModel):
    items: list[SubscriberResponse]
    total: int
    page: int
    page_size: int
    pages: int
