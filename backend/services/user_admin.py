"""
Admin user management.

Keeps identity-provider users and local profile rows in step. Identity
operations go through the Supabase admin API; everything else is local.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.identity import (
    IdentityNotFoundError,
    IdentityProviderError,
    IdentityUser,
    SupabaseAdminAdapter,
)
from core.dates import utcnow
from infrastructure.config.settings import settings
from infrastructure.database.models import (
    AICredits,
    Competitor,
    InspirationLink,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Profile,
    SocialLink,
    SubscriptionTier,
    Task,
    TaskCategory,
)

from .subscription_status import latest_completed_payment

logger = logging.getLogger(__name__)

# Profile columns an admin may edit directly
EDITABLE_PROFILE_FIELDS = (
    "business_name",
    "business_category",
    "target_audience",
    "persona",
    "monthly_goal_short",
    "monthly_goal_long",
    "tier",
    "has_unlimited_free",
)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserAdminError(Exception):
    """An admin user operation that cannot be completed."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class DeletionResult:
    message: Optional[str] = None
    warning: Optional[str] = None


@dataclass
class UserDetails:
    profile: Profile
    identity: Optional[IdentityUser]
    latest_payment: Optional[Payment]


class UserAdminService:
    """User management for the admin dashboard."""

    def __init__(self, db: AsyncSession, identity: SupabaseAdminAdapter):
        self.db = db
        self.identity = identity

    async def _get_profile(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def list_users(self, search: Optional[str] = None) -> List[Profile]:
        query = select(Profile).order_by(Profile.created_at.desc())
        if search:
            pattern = f"%{escape_like(search.strip())}%"
            query = query.where(
                or_(
                    Profile.email.ilike(pattern, escape="\\"),
                    Profile.business_name.ilike(pattern, escape="\\"),
                )
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_user(self, user_id: str) -> UserDetails:
        profile = await self._get_profile(user_id)
        if profile is None:
            raise UserAdminError("User not found", status_code=404)

        identity: Optional[IdentityUser] = None
        try:
            identity = await self.identity.get_user(user_id)
        except IdentityNotFoundError:
            logger.info("User %s has a profile but no identity record", user_id)
        except IdentityProviderError as e:
            logger.warning("Identity lookup failed for user %s: %s", user_id, e)

        return UserDetails(
            profile=profile,
            identity=identity,
            latest_payment=await latest_completed_payment(self.db, user_id),
        )

    async def create_user(
        self,
        email: str,
        password: str,
        business_name: Optional[str] = None,
        has_unlimited_free: bool = False,
    ) -> Profile:
        """
        Create a confirmed identity user with a pro profile.

        Users without the unlimited flag start on a trial recorded as a
        zero-amount completed payment.
        """
        if not email or not password:
            raise UserAdminError("Email and password are required")

        email = email.strip()
        existing = await self.db.execute(select(Profile.id).where(func.lower(Profile.email) == email.lower()))
        if existing.scalar_one_or_none() is not None:
            raise UserAdminError("A user with this email already exists")
        try:
            if await self.identity.find_user_by_email(email) is not None:
                raise UserAdminError("A user with this email already exists")
            identity_user = await self.identity.create_user(
                email=email,
                password=password,
                user_metadata={"created_by_admin": True},
            )
        except IdentityProviderError as e:
            raise UserAdminError(str(e) or "Failed to create user") from e

        now = utcnow()
        profile = Profile(
            id=identity_user.id,
            email=identity_user.email or email,
            business_name=business_name or "",
            tier=SubscriptionTier.PRO.value,
            has_unlimited_free=has_unlimited_free,
        )
        self.db.add(profile)
        if not has_unlimited_free:
            trial_end = now + timedelta(days=settings.stripe_trial_days)
            self.db.add(
                Payment(
                    user_id=identity_user.id,
                    amount=0,
                    currency="eur",
                    status=PaymentStatus.COMPLETED.value,
                    payment_method=PaymentMethod.TRIAL.value,
                    subscription_period_start=now,
                    subscription_period_end=trial_end,
                    next_payment_date=trial_end,
                    tier_at_payment=SubscriptionTier.PRO.value,
                )
            )

        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Profile creation failed for %s, removing identity user: %s", identity_user.id, e)
            try:
                await self.identity.delete_user(identity_user.id)
            except IdentityProviderError as cleanup_error:
                logger.error("Cleanup of identity user %s failed: %s", identity_user.id, cleanup_error)
            raise UserAdminError("Failed to create profile", status_code=500) from e

        logger.info("Admin created user %s (unlimited=%s)", identity_user.id, has_unlimited_free)
        return profile

    async def update_user(self, user_id: str, values: Dict[str, Any]) -> Profile:
        profile = await self._get_profile(user_id)
        if profile is None:
            raise UserAdminError("User not found", status_code=404)

        for field in EDITABLE_PROFILE_FIELDS:
            if values.get(field) is not None:
                setattr(profile, field, values[field])

        email = values.get("email")
        password = values.get("password")
        if email or password:
            try:
                await self.identity.update_user(user_id, email=email, password=password)
            except IdentityProviderError as e:
                await self.db.rollback()
                raise UserAdminError(str(e)) from e
            if email:
                profile.email = email

        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def _delete_local(self, user_id: str) -> None:
        """Remove the profile and every row hanging off it."""
        task_ids = select(Task.id).where(Task.user_id == user_id)
        for model, column in (
            (Payment, Payment.user_id),
            (AICredits, AICredits.user_id),
            (Competitor, Competitor.user_id),
            (SocialLink, SocialLink.profile_id),
        ):
            await self.db.execute(delete(model).where(column == user_id))
        # Links go with their tasks; categories after tasks drop the reference
        await self.db.execute(delete(InspirationLink).where(InspirationLink.task_id.in_(task_ids)))
        await self.db.execute(delete(Task).where(Task.user_id == user_id))
        await self.db.execute(delete(TaskCategory).where(TaskCategory.user_id == user_id))
        await self.db.execute(delete(Profile).where(Profile.id == user_id))
        await self.db.commit()

    async def delete_user(self, user_id: str, acting_admin_id: str) -> DeletionResult:
        """
        Delete a user upstream and locally.

        A user already gone upstream only loses local rows. When the
        upstream delete fails the local rows are still removed and the
        result carries a warning.
        """
        if user_id == acting_admin_id:
            raise UserAdminError("Cannot delete your own account")

        try:
            await self.identity.get_user(user_id)
        except IdentityNotFoundError:
            await self._delete_local(user_id)
            logger.info("User %s was already absent upstream; local rows removed", user_id)
            return DeletionResult(message="User was already deleted from auth system")
        except IdentityProviderError as e:
            logger.warning("Identity lookup before deletion of %s failed: %s", user_id, e)

        upstream_error: Optional[IdentityProviderError] = None
        try:
            await self.identity.delete_user(user_id)
        except IdentityNotFoundError:
            pass
        except IdentityProviderError as e:
            logger.error("Identity deletion of %s failed, deleting locally: %s", user_id, e)
            upstream_error = e

        try:
            await self._delete_local(user_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Local deletion of %s failed: %s", user_id, e)
            raise UserAdminError(f"Failed to delete user: {upstream_error or e}", status_code=500) from e

        if upstream_error is not None:
            return DeletionResult(warning="User deleted from profiles but may still exist in the auth system")
        logger.info("Deleted user %s", user_id)
        return DeletionResult()

    async def resend_confirmation(self, user_id: str) -> str:
        """
        Generate a fresh sign-in link for an unconfirmed user.

        The provider only generates the link; delivery depends on its
        mail configuration.

        Returns:
            The action link
        """
        try:
            user = await self.identity.get_user(user_id)
        except IdentityNotFoundError as e:
            raise UserAdminError("User not found", status_code=404) from e
        except IdentityProviderError as e:
            raise UserAdminError(str(e), status_code=500) from e

        if user.is_confirmed:
            raise UserAdminError("User email is already confirmed")
        if not user.email:
            raise UserAdminError("User has no email address")

        redirect_to = f"{settings.frontend_url.rstrip('/')}/auth/callback"
        for link_type in ("magiclink", "recovery"):
            try:
                link = await self.identity.generate_link(link_type, user.email, redirect_to=redirect_to)
                logger.info("Generated %s link for user %s", link_type, user_id)
                return link
            except IdentityProviderError as e:
                logger.warning("Generating %s link for %s failed: %s", link_type, user_id, e)

        raise UserAdminError("Failed to generate confirmation link")
