"""
Admin user management API routes.
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.identity import SupabaseAdminAdapter
from api.dependencies import get_identity_admin
from api.deps_admin import get_current_admin_user
from api.schemas.admin import (
    AdminActionResponse,
    AdminPaymentInfo,
    AdminUserCreate,
    AdminUserDetail,
    AdminUserListItem,
    AdminUserListResponse,
    AdminUserUpdate,
)
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from services.user_admin import UserAdminError, UserAdminService, UserDetails

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/users", tags=["Admin - Users"])


def _http_error(e: UserAdminError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


def _detail(details: UserDetails) -> AdminUserDetail:
    profile = details.profile
    identity = details.identity
    return AdminUserDetail(
        id=profile.id,
        email=profile.email or (identity.email if identity else None),
        business_name=profile.business_name,
        business_category=profile.business_category,
        target_audience=profile.target_audience,
        persona=profile.persona,
        monthly_goal_short=profile.monthly_goal_short,
        monthly_goal_long=profile.monthly_goal_long,
        role=profile.role,
        tier=profile.tier,
        has_unlimited_free=profile.has_unlimited_free,
        created_at=profile.created_at,
        email_confirmed_at=identity.email_confirmed_at if identity else None,
        last_sign_in_at=identity.last_sign_in_at if identity else None,
        latest_payment=(
            AdminPaymentInfo.model_validate(details.latest_payment)
            if details.latest_payment
            else None
        ),
    )


@router.get("", response_model=AdminUserListResponse)
async def list_users(
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    search: Optional[str] = Query(None, max_length=255, description="Match on email or business name"),
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    profiles = await UserAdminService(db, identity).list_users(search)
    return AdminUserListResponse(
        items=[AdminUserListItem.model_validate(p) for p in profiles],
        total=len(profiles),
    )


@router.get("/{user_id}", response_model=AdminUserDetail)
async def get_user(
    user_id: str,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    try:
        details = await UserAdminService(db, identity).get_user(user_id)
    except UserAdminError as e:
        raise _http_error(e) from e
    return _detail(details)


@router.post("", response_model=AdminUserListItem, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: AdminUserCreate,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    """Create a confirmed user. Without unlimited access the user starts a trial."""
    try:
        profile = await UserAdminService(db, identity).create_user(
            email=body.email,
            password=body.password,
            business_name=body.business_name,
            has_unlimited_free=body.has_unlimited_free,
        )
    except UserAdminError as e:
        raise _http_error(e) from e
    logger.info("Admin %s created user %s", admin_user.id, profile.id)
    return AdminUserListItem.model_validate(profile)


@router.put("/{user_id}", response_model=AdminUserListItem)
async def update_user(
    user_id: str,
    body: AdminUserUpdate,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    try:
        profile = await UserAdminService(db, identity).update_user(
            user_id, body.model_dump(exclude_unset=True)
        )
    except UserAdminError as e:
        raise _http_error(e) from e
    return AdminUserListItem.model_validate(profile)


@router.delete("/{user_id}", response_model=AdminActionResponse)
async def delete_user(
    user_id: str,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    try:
        result = await UserAdminService(db, identity).delete_user(user_id, admin_user.id)
    except UserAdminError as e:
        raise _http_error(e) from e
    logger.info("Admin %s deleted user %s", admin_user.id, user_id)
    return AdminActionResponse(message=result.message, warning=result.warning)


@router.post("/{user_id}/resend-confirmation", response_model=AdminActionResponse)
async def resend_confirmation(
    user_id: str,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
    identity: SupabaseAdminAdapter = Depends(get_identity_admin),
):
    try:
        link = await UserAdminService(db, identity).resend_confirmation(user_id)
    except UserAdminError as e:
        raise _http_error(e) from e
    return AdminActionResponse(
        message="Confirmation link generated. Delivery depends on the auth provider mail settings.",
        confirmation_link=link or None,
    )
