"""API Routes."""

from fastapi import APIRouter

from .activity_logs import router as activity_logs_router
from .announcements import router as announcements_router
from .auth import router as auth_router
from .categories import router as categories_router
from .health import router as health_router
from .newsletter import router as newsletter_router
from .public import router as public_router
from .scheduler import router as scheduler_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(auth_router)
api_router.include_router(announcements_router)
api_router.include_router(categories_router)
api_router.include_router(public_router)
api_router.include_router(newsletter_router)
api_router.include_router(activity_logs_router)
api_router.include_router(scheduler_router)
