"""
Announcement administration routes: CRUD, publishing, drafts, visibility
and revision history.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.middleware.rate_limit import get_client_ip
from api.dependencies import get_current_user
from api.schemas.content import (
    AnnouncementCreateRequest,
    AnnouncementListResponse,
    AnnouncementResponse,
    AnnouncementUpdateRequest,
    BulkActionRequest,
    BulkActionResponse,
    DraftRequest,
    DraftResponse,
    RestoreResponse,
    RevisionCompareResponse,
    RevisionDetailResponse,
    RevisionListResponse,
    RevisionResponse,
    VisibilityResponse,
)
from api.utils import http_error, page_count
from core.domain.announcement import RevisionSnapshot, as_utc
from core.exceptions import ContentError
from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.announcements import AnnouncementService, AnnouncementStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["Announcements"])


def get_announcement_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> AnnouncementService:
    return AnnouncementService(db, settings, ip_address=get_client_ip(request))


def _draft_response(announcement) -> DraftResponse:
    return DraftResponse(
        announcement_id=announcement.id,
        draft_content=announcement.draft_content,
        draft_updated_at=announcement.draft_updated_at,
    )


# ============================================================================
# Announcement CRUD
# ============================================================================


@router.get("", response_model=AnnouncementListResponse)
async def list_announcements(
    q: Optional[str] = Query(None, max_length=200),
    category_id: Optional[str] = None,
    status_filter: Optional[AnnouncementStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    List announcements for the admin console.

    A database failure returns an empty page flagged ``degraded`` so the
    console can offer a retry instead of an error screen.
    """
    try:
        items, total = await service.list_admin(
            now=datetime.now(timezone.utc),
            q=q,
            category_id=category_id,
            status=status_filter,
            page=page,
            page_size=page_size,
        )
    except SQLAlchemyError as e:
        logger.error("Announcement listing failed: %s", e)
        await db.rollback()
        return AnnouncementListResponse(
            items=[], total=0, page=page, page_size=page_size, pages=0, degraded=True
        )

    return AnnouncementListResponse(
        items=[AnnouncementResponse.model_validate(item) for item in items],
        total=total,
        page=page,
        page_size=page_size,
        pages=page_count(total, page_size),
    )


@router.post("", response_model=AnnouncementResponse, status_code=status.HTTP_201_CREATED)
async def create_announcement(
    request: AnnouncementCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Create an announcement (draft unless ``is_published`` is set)."""
    try:
        announcement = await service.create(current_user.id, **request.to_service_kwargs())
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return announcement


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_action(
    request: BulkActionRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Publish, unpublish or delete up to 100 announcements in one transaction."""
    try:
        result = await service.bulk(request.ids, request.action, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return BulkActionResponse(action=result.action, affected=result.affected, missing=result.missing)


@router.get("/{announcement_id}", response_model=AnnouncementResponse)
async def get_announcement(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        return await service.get(announcement_id)
    except ContentError as e:
        raise http_error(e)


@router.put("/{announcement_id}", response_model=AnnouncementResponse)
async def update_announcement(
    announcement_id: str,
    request: AnnouncementUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    Update an announcement.

    Only fields present in the request body change.  Editing the title,
    content, excerpt or image, or flipping ``is_published``, appends a
    revision in the same transaction.
    """
    try:
        announcement = await service.update(announcement_id, request.to_changes(), current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return announcement


@router.delete("/{announcement_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_announcement(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Permanently delete an announcement and its revision history."""
    try:
        await service.delete(announcement_id, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{announcement_id}/publish", response_model=AnnouncementResponse)
async def publish_announcement(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        announcement = await service.set_published(announcement_id, True, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return announcement


@router.post("/{announcement_id}/unpublish", response_model=AnnouncementResponse)
async def unpublish_announcement(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        announcement = await service.set_published(announcement_id, False, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)

    return announcement


@router.get("/{announcement_id}/visibility", response_model=VisibilityResponse)
async def get_visibility(
    announcement_id: str,
    at: Optional[datetime] = Query(None, description="Instant to evaluate; defaults to now"),
    current_user: User = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Effective public visibility of an announcement at ``at``."""
    try:
        announcement = await service.get(announcement_id)
    except ContentError as e:
        raise http_error(e)

    now = as_utc(at) if at else datetime.now(timezone.utc)
    decision = announcement.visibility(now)
    return VisibilityResponse(
        announcement_id=announcement.id,
        at=now,
        visible=decision.visible,
        reason=decision.reason.value,
        state=decision.state.value,
    )


# ============================================================================
# Draft autosave
# ============================================================================


@router.get("/{announcement_id}/draft", response_model=DraftResponse)
async def get_draft(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        announcement = await service.get(announcement_id)
    except ContentError as e:
        raise http_error(e)
    return _draft_response(announcement)


@router.put("/{announcement_id}/draft", response_model=DraftResponse)
async def save_draft(
    announcement_id: str,
    request: DraftRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Autosave editor content; the live announcement and its history are untouched."""
    try:
        announcement = await service.save_draft(announcement_id, request.draft_content)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return _draft_response(announcement)


@router.delete("/{announcement_id}/draft", status_code=status.HTTP_204_NO_CONTENT)
async def discard_draft(
    announcement_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    try:
        await service.discard_draft(announcement_id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================================
# Revision endpoints
# ============================================================================


@router.get("/{announcement_id}/revisions", response_model=RevisionListResponse)
async def list_revisions(
    announcement_id: str,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    Revision history for an announcement, newest first.
    Returns lightweight items without the content body.
    """
    try:
        revisions, total = await service.ledger.list_revisions(announcement_id, limit, offset)
    except ContentError as e:
        raise http_error(e)
    except SQLAlchemyError as e:
        logger.error(
            "Revision listing failed: %s", e, extra={"announcement_id": announcement_id}
        )
        await db.rollback()
        return RevisionListResponse(items=[], total=0, limit=limit, offset=offset, degraded=True)

    return RevisionListResponse(
        items=[RevisionResponse.model_validate(revision) for revision in revisions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{announcement_id}/revisions/compare", response_model=RevisionCompareResponse)
async def compare_revisions(
    announcement_id: str,
    a: str = Query(..., description="First revision id"),
    b: str = Query(..., description="Second revision id"),
    current_user: User = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """Which snapshot fields differ between two revisions of one announcement."""
    try:
        revision_a, revision_b, changed = await service.ledger.compare(announcement_id, a, b)
    except ContentError as e:
        raise http_error(e)

    return RevisionCompareResponse(
        revision_a=RevisionDetailResponse.model_validate(revision_a),
        revision_b=RevisionDetailResponse.model_validate(revision_b),
        changed_fields=changed,
        changes={field: field in changed for field in RevisionSnapshot.FIELDS},
    )


@router.get(
    "/{announcement_id}/revisions/{revision_id}",
    response_model=RevisionDetailResponse,
)
async def get_revision(
    announcement_id: str,
    revision_id: str,
    current_user: User = Depends(get_current_user),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """A single revision with its full snapshot, for preview."""
    try:
        return await service.ledger.get_revision(announcement_id, revision_id)
    except ContentError as e:
        raise http_error(e)


@router.post(
    "/{announcement_id}/revisions/{revision_id}/restore",
    response_model=RestoreResponse,
)
async def restore_revision(
    announcement_id: str,
    revision_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: AnnouncementService = Depends(get_announcement_service),
):
    """
    Restore an announcement to a previous revision.

    The restored state is appended as a new RESTORE revision, so a restore
    can itself be undone by restoring the revision before it.
    """
    try:
        result = await service.restore(announcement_id, revision_id, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e, prefix="Could not restore announcement")

    logger.info(
        "Announcement restored to version %d",
        result.restored_from_version,
        extra={"announcement_id": announcement_id, "version": result.revision.version},
    )
    return RestoreResponse(
        message=f"Restored to version {result.restored_from_version}",
        announcement=AnnouncementResponse.model_validate(result.announcement),
        revision=RevisionResponse.model_validate(result.revision),
        restored_from_version=result.restored_from_version,
        revision_count=result.revision_count,
    )
