"""
Category management routes.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.middleware.rate_limit import get_client_ip
from api.dependencies import get_current_user
from api.schemas.category import CategoryCreateRequest, CategoryResponse, CategoryUpdateRequest
from api.utils import http_error
from core.exceptions import ContentError
from infrastructure.database.connection import get_db
from infrastructure.database.models.user import User
from services.categories import CategoryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/categories", tags=["Categories"])


def get_category_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CategoryService:
    return CategoryService(db, ip_address=get_client_ip(request))


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    current_user: User = Depends(get_current_user),
    service: CategoryService = Depends(get_category_service),
):
    rows = await service.list_with_counts()
    return [
        CategoryResponse.model_validate(category).model_copy(update={"announcement_count": count})
        for category, count in rows
    ]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CategoryCreateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CategoryService = Depends(get_category_service),
):
    try:
        category = await service.create(request.name, current_user.id, color=request.color)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return category


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    request: CategoryUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CategoryService = Depends(get_category_service),
):
    try:
        category = await service.update(
            category_id,
            current_user.id,
            name=request.name,
            color=request.color,
            sort_order=request.order,
        )
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    service: CategoryService = Depends(get_category_service),
):
    """Delete a category; refused while announcements still use it."""
    try:
        await service.delete(category_id, current_user.id)
        await db.commit()
    except ContentError as e:
        await db.rollback()
        raise http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
