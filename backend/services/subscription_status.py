"""
Subscription status resolution.

Answers "does this user currently have paid access, until when, and on
which tier" from the profile flags, the payment ledger and, where a
subscription id is known, the live subscription at Stripe.
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import StripeAdapter, StripeAdapterError, StripeSubscription
from core.dates import ensure_utc, utcnow
from infrastructure.database.models import Payment, PaymentStatus, Profile, SubscriptionTier

logger = logging.getLogger(__name__)


@dataclass
class SubscriptionState:
    """Resolved subscription status for one user."""

    has_active_subscription: bool
    subscription_end_date: Optional[datetime]
    tier: str
    is_admin: bool = False
    status: Optional[str] = None
    is_cancelled: bool = False
    cancel_at: Optional[datetime] = None
    is_trialing: bool = False
    trial_end: Optional[datetime] = None
    trial_days_remaining: Optional[int] = None
    message: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


async def latest_completed_payment(
    db: AsyncSession,
    user_id: str,
    with_subscription_id: bool = False,
) -> Optional[Payment]:
    """Most recent completed ledger row for a user."""
    query = select(Payment).where(
        Payment.user_id == user_id,
        Payment.status == PaymentStatus.COMPLETED.value,
    )
    if with_subscription_id:
        query = query.where(Payment.stripe_subscription_id.isnot(None))
    result = await db.execute(query.order_by(Payment.created_at.desc()).limit(1))
    return result.scalar_one_or_none()


def trial_days_remaining(trial_end: Optional[datetime], now: datetime) -> Optional[int]:
    if trial_end is None or trial_end <= now:
        return None
    return math.ceil((trial_end - now) / timedelta(days=1))


class SubscriptionStatusResolver:
    """
    Resolves a profile's subscription state.

    Order: admin role, unlimited flag, live subscription behind the latest
    payment that carries a subscription id, pro tier without a known
    subscription, latest completed payment, nothing.
    """

    def __init__(self, db: AsyncSession, stripe_adapter: StripeAdapter):
        self.db = db
        self.stripe = stripe_adapter

    def _from_subscription(
        self,
        subscription: StripeSubscription,
        tier: str,
        now: datetime,
    ) -> SubscriptionState:
        trialing = subscription.is_trialing(now)
        return SubscriptionState(
            has_active_subscription=subscription.grants_access,
            subscription_end_date=subscription.access_end_date(now),
            tier=tier,
            status=subscription.status,
            is_cancelled=subscription.cancel_at_period_end,
            cancel_at=subscription.cancel_at,
            is_trialing=trialing,
            trial_end=subscription.trial_end,
            trial_days_remaining=trial_days_remaining(subscription.trial_end, now) if trialing else None,
        )

    async def resolve(self, profile: Profile, now: Optional[datetime] = None) -> SubscriptionState:
        now = now or utcnow()

        if profile.is_admin:
            return SubscriptionState(
                has_active_subscription=True,
                subscription_end_date=None,
                tier=SubscriptionTier.ADMIN.value,
                is_admin=True,
                message="Admin access",
            )

        if profile.has_unlimited_free:
            return SubscriptionState(
                has_active_subscription=True,
                subscription_end_date=None,
                tier=profile.tier,
                message="Unlimited free access",
            )

        if self.stripe.is_configured:
            payment = await latest_completed_payment(self.db, profile.id, with_subscription_id=True)
            if payment is not None:
                try:
                    subscription = await self.stripe.retrieve_subscription(payment.stripe_subscription_id)
                    return self._from_subscription(subscription, payment.tier_at_payment, now)
                except StripeAdapterError as e:
                    logger.warning(
                        "Live subscription lookup failed for user %s: %s", profile.id, e
                    )

        if profile.tier == SubscriptionTier.PRO.value:
            # Tier was set by checkout but no subscription id is recorded yet.
            # Access is granted; an email search may supply a concrete end date.
            if self.stripe.is_configured and profile.email:
                try:
                    subscription = await self.stripe.find_subscription_by_email(profile.email)
                except StripeAdapterError as e:
                    logger.warning("Subscription search by email failed for user %s: %s", profile.id, e)
                    subscription = None
                if subscription is not None:
                    return self._from_subscription(subscription, profile.tier, now)
            return SubscriptionState(
                has_active_subscription=True,
                subscription_end_date=None,
                tier=profile.tier,
                message="Pro tier without a recorded subscription",
            )

        payment = await latest_completed_payment(self.db, profile.id)
        if payment is not None:
            period_end = ensure_utc(payment.subscription_period_end)
            return SubscriptionState(
                has_active_subscription=period_end is not None and period_end > now,
                subscription_end_date=period_end,
                tier=payment.tier_at_payment,
                status=payment.payment_method,
            )

        return SubscriptionState(
            has_active_subscription=False,
            subscription_end_date=None,
            tier=profile.tier,
            message="No subscription",
        )
