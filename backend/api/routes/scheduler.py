"""
Cron entry point for the publish scheduler.

External schedulers (cron, Railway cron, GitHub Actions) call this with
``Authorization: Bearer <CRON_SECRET>`` when the in-process loop is disabled.
"""

import hmac
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.config.settings import Settings, get_settings
from infrastructure.database.connection import get_db
from services.publish_scheduler import sweep_schedules

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scheduler", tags=["Scheduler"])


def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> None:
    if not settings.cron_secret:
        logger.error("Scheduler endpoint called but CRON_SECRET is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Scheduler is not configured",
        )

    expected = f"Bearer {settings.cron_secret}"
    if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )


@router.api_route("/run", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def run_scheduler(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Apply elapsed schedules and takedowns now."""
    try:
        result = await sweep_schedules(db, settings=settings)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(
        "Scheduler run: %d published, %d taken down", result.published, result.taken_down
    )
    return {"success": True, **result.as_dict()}
