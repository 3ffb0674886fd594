"""
API dependencies for authentication and third-party clients.

Adapter providers are plain dependencies so tests can swap them through
``app.dependency_overrides``.
"""

import logging
from typing import Annotated, AsyncIterator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.cms import SanityAdapter, SanityConfigurationError
from adapters.identity import IdentityConfigurationError, SupabaseAdminAdapter
from adapters.payments import StripeAdapter, create_stripe_adapter
from core.security.tokens import TokenService
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile

logger = logging.getLogger(__name__)

token_service = TokenService(
    secret_key=settings.supabase_jwt_secret,
    algorithm=settings.jwt_algorithm,
    audience=settings.jwt_audience,
    access_token_expire_minutes=settings.jwt_access_token_expire_minutes,
)


def _extract_token(request: Request, authorization: str | None) -> str | None:
    if authorization and authorization.startswith("Bearer "):
        token = authorization.split(" ", 1)[1].strip()
        if token:
            return token
    return request.cookies.get("access_token")


async def get_current_user(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> Profile:
    """
    Dependency to get the profile of the authenticated user.

    Reads the Bearer token first and the ``access_token`` cookie second.
    A valid token for a user without a profile row provisions one.
    """
    token = _extract_token(request, authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = token_service.verify_access_token(token)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(Profile).where(Profile.id == payload.sub))
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = Profile(id=payload.sub, email=payload.email)
        db.add(profile)
        try:
            await db.commit()
        except IntegrityError:
            # Concurrent first request already created it
            await db.rollback()
            result = await db.execute(select(Profile).where(Profile.id == payload.sub))
            profile = result.scalar_one()
        else:
            logger.info("Provisioned profile for user %s", payload.sub)
            await db.refresh(profile)

    request.state.user_id = profile.id
    return profile


def get_stripe_adapter() -> StripeAdapter:
    return create_stripe_adapter()


async def get_sanity_adapter() -> AsyncIterator[SanityAdapter]:
    try:
        adapter = SanityAdapter()
    except SanityConfigurationError as e:
        logger.error("Sanity adapter unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="CMS is not configured",
        ) from e
    async with adapter:
        yield adapter


async def get_identity_admin() -> AsyncIterator[SupabaseAdminAdapter]:
    try:
        adapter = SupabaseAdminAdapter()
    except IdentityConfigurationError as e:
        logger.error("Identity admin adapter unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="User management is not configured",
        ) from e
    async with adapter:
        yield adapter
