"""API Routes."""

from fastapi import APIRouter

from .admin_content import router as admin_content_router
from .admin_users import router as admin_users_router
from .ai import router as ai_router
from .billing import router as billing_router
from .case_studies import router as case_studies_router
from .categories import router as categories_router
from .competitors import router as competitors_router
from .health import router as health_router
from .profile import router as profile_router
from .sanity_sync import router as sanity_sync_router
from .tasks import router as tasks_router
from .templates import router as templates_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(profile_router)
api_router.include_router(tasks_router)
api_router.include_router(categories_router)
api_router.include_router(competitors_router)
api_router.include_router(templates_router)
api_router.include_router(case_studies_router)
api_router.include_router(ai_router)
api_router.include_router(billing_router)
api_router.include_router(admin_users_router)
api_router.include_router(admin_content_router)
api_router.include_router(sanity_sync_router)
