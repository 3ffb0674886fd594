"""
CMS sync routes (admin only).
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.cms import SanityAdapter, SanityError
from api.dependencies import get_sanity_adapter
from api.deps_admin import get_current_admin_user
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.sync import SyncResponse
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from services.cms_sync import CmsSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sanity", tags=["Admin - CMS"])


@router.post("/sync-templates", response_model=SyncResponse)
@limiter.limit(get_rate_limit("cms_sync"))
async def sync_templates(
    request: Request,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    sanity: SanityAdapter = Depends(get_sanity_adapter),
):
    """Upsert every CMS template by title and format."""
    try:
        report = await CmsSyncService(db, sanity).sync_templates(admin_user.id)
    except SanityError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sync templates",
        ) from e
    return SyncResponse(**report.as_dict())


@router.post("/sync-case-studies", response_model=SyncResponse)
@limiter.limit(get_rate_limit("cms_sync"))
async def sync_case_studies(
    request: Request,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    sanity: SanityAdapter = Depends(get_sanity_adapter),
):
    """Upsert every CMS case study by document id."""
    try:
        report = await CmsSyncService(db, sanity).sync_case_studies(admin_user.id)
    except SanityError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to sync case studies",
        ) from e
    return SyncResponse(**report.as_dict())
