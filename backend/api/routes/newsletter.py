"""
Newsletter routes: public subscribe/unsubscribe and admin subscriber management.
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.middleware.rate_limit import get_client_ip, get_rate_limit, limiter
from api.schemas.newsletter import (
    SubscribeRequest,
    SubscribeResponse,
    SubscriberListResponse,
    SubscriberResponse,
    UnsubscribeRequest,
)
from api.utils import http_error, page_count
from core.exceptions import ContentError
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.newsletter import NewsletterService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletter", tags=["Newsletter"])

_MESSAGES = {
    "created": "Subscribed successfully",
    "reactivated": "Subscription reactivated successfully",
    "already_subscribed": "Already subscribed",
}


@router.post("/subscribe", response_model=SubscribeResponse)
@limiter.limit(get_rate_limit("subscribe"))
async def subscribe(
    request: Request,
    body: SubscribeRequest,
    db: AsyncSession = Depends(get_db),
):
    """Subscribe an email address; repeating the call is harmless."""
    service = NewsletterService(db, ip_address=get_client_ip(request))
    subscriber, outcome = await service.subscribe(body.email, body.name)
    await db.commit()

    return SubscribeResponse(
        message=_MESSAGES[outcome],
        status=outcome,
        unsubscribe_token=None if outcome == "already_subscribed" else subscriber.unsubscribe_token,
    )


@router.post("/unsubscribe", response_model=SubscribeResponse)
async def unsubscribe(
    request: Request,
    body: UnsubscribeRequest,
    db: AsyncSession = Depends(get_db),
):
    service = NewsletterService(db, ip_address=get_client_ip(request))
    try:
        await service.unsubscribe(body.token)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return SubscribeResponse(message="Unsubscribed successfully", status="unsubscribed")


@router.get("/subscribers", response_model=SubscriberListResponse)
async def list_subscribers(
    active: bool = Query(False, description="Only active subscriptions"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
):
    items, total = await NewsletterService(db).list_subscribers(
        active_only=active, page=page, page_size=page_size
    )
    return SubscriberListResponse(
        items=[SubscriberResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size),
    )


@router.delete("/subscribers/{subscriber_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscriber(
    subscriber_id: str,
    request: Request,
    current_user: User = Depends(get_current_admin_user),
    db: AsyncSession = Depends(get_db),
):
    service = NewsletterService(db, ip_address=get_client_ip(request))
    try:
        await service.delete(subscriber_id, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
