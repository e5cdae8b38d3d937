"""
Public (unauthenticated) read routes for the news site.

Visibility is evaluated at request time, so scheduled and taken-down
announcements appear and disappear on time even if the scheduler lags.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas.category import CategoryResponse
from api.schemas.content import (
    FeaturedAnnouncementsResponse,
    PublicAnnouncementListResponse,
    PublicAnnouncementResponse,
)
from api.utils import http_error, page_count
from core.exceptions import ContentError
from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.connection import get_db
from services.announcements import AnnouncementService
from services.categories import CategoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/public", tags=["Public"])


def get_public_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnnouncementService:
    return AnnouncementService(db, settings)


@router.get("/announcements", response_model=PublicAnnouncementListResponse)
async def list_public_announcements(
    category: Optional[str] = Query(None, description="Category slug"),
    q: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1, le=50),
    service: AnnouncementService = Depends(get_public_service),
):
    """Currently visible announcements, pinned first then newest."""
    page_size = page_size or service.settings.public_page_size
    items, total = await service.list_public(
        now=datetime.now(timezone.utc),
        category_slug=category,
        q=q,
        page=page,
        page_size=page_size,
    )
    return PublicAnnouncementListResponse(
        items=[PublicAnnouncementResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size),
    )


@router.get("/announcements/featured", response_model=FeaturedAnnouncementsResponse)
async def featured_announcements(
    limit: int = Query(5, ge=1, le=20),
    service: AnnouncementService = Depends(get_public_service),
):
    hero, pinned = await service.featured(datetime.now(timezone.utc), limit=limit)
    return FeaturedAnnouncementsResponse(
        hero=[PublicAnnouncementResponse.model_validate(item) for item in hero],
        pinned=[PublicAnnouncementResponse.model_validate(item) for item in pinned],
    )


@router.get("/announcements/{slug}", response_model=PublicAnnouncementResponse)
async def get_public_announcement(
    slug: str,
    service: AnnouncementService = Depends(get_public_service),
):
    """
    A visible announcement by slug.

    Hidden announcements answer 404 exactly like missing ones.  The view
    counter is bumped after the response body is built; a failed increment
    is logged and does not affect the response.
    """
    try:
        announcement = await service.get_public(slug, datetime.now(timezone.utc))
    except ContentError as e:
        raise http_error(e)

    response = PublicAnnouncementResponse.model_validate(announcement)
    await service.record_view(announcement.id)
    return response


@router.get("/categories", response_model=list[CategoryResponse])
async def list_public_categories(db: AsyncSession = Depends(get_db)):
    """Categories in display order with their announcement counts."""
    rows = await CategoryService(db).list_with_counts()
    return [
        CategoryResponse.model_validate(category).model_copy(update={"announcement_count": count})
        for category, count in rows
    ]
