"""
Stripe reconciliation.

Turns checkout completions, invoices and subscription lifecycle events
(delivered by webhook or confirmed by the browser after redirect) into
profile tier changes and payment ledger rows.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import (
    StripeAdapter,
    StripeAdapterError,
    StripeCheckoutSession,
    StripeNotFoundError,
    StripeSubscription,
)
from core.dates import ensure_utc, from_timestamp, utcnow
from infrastructure.database.models import (
    Payment,
    PaymentMethod,
    PaymentStatus,
    Profile,
    SubscriptionTier,
)

from .subscription_status import latest_completed_payment

logger = logging.getLogger(__name__)

PAID_SESSION_STATUSES = ("paid", "no_payment_required")
SKIPPED_BILLING_REASONS = ("subscription_create",)


class BillingError(Exception):
    """A reconciliation request that cannot be honoured."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass
class CheckoutOutcome:
    """Result of applying a checkout to the local state."""

    outcome: str  # trial, paid, already_processed
    tier: str
    payment_id: Optional[str] = None
    subscription_id: Optional[str] = None

    @property
    def already_processed(self) -> bool:
        return self.outcome == "already_processed"


@dataclass
class CancellationResult:
    cancel_at: Optional[datetime]
    access_until: Optional[datetime]
    is_trialing: bool
    trial_end: Optional[datetime]


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def invoice_subscription_id(invoice: Any) -> Optional[str]:
    """Subscription id of an invoice; newer API versions nest it under ``parent``."""
    subscription = _get(invoice, "subscription")
    if subscription is None:
        details = _get(_get(invoice, "parent"), "subscription_details")
        subscription = _get(details, "subscription")
    if subscription is None or isinstance(subscription, str):
        return subscription
    return _get(subscription, "id")


def _invoice_metadata_user(invoice: Any) -> Optional[str]:
    for details in (
        _get(invoice, "subscription_details"),
        _get(_get(invoice, "parent"), "subscription_details"),
    ):
        user_id = _get(_get(details, "metadata"), "userId")
        if user_id:
            return user_id
    return None


class BillingReconciler:
    """Applies Stripe billing events to profiles and the payment ledger."""

    def __init__(self, db: AsyncSession, stripe_adapter: StripeAdapter):
        self.db = db
        self.stripe = stripe_adapter

    async def _get_profile(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def _payment_for_subscription(self, subscription_id: str) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment)
            .where(Payment.stripe_subscription_id == subscription_id)
            .order_by(Payment.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def _resolve_owner(
        self,
        subscription_id: Optional[str],
        metadata_user_id: Optional[str],
    ) -> Optional[str]:
        """Owner of a subscription: ledger first, then subscription metadata."""
        if subscription_id:
            payment = await self._payment_for_subscription(subscription_id)
            if payment is not None:
                return payment.user_id
        if metadata_user_id and await self._get_profile(metadata_user_id) is not None:
            return metadata_user_id
        return None

    def _ledger_row(
        self,
        user_id: str,
        subscription: StripeSubscription,
        tier: str,
        amount: float,
        currency: Optional[str],
    ) -> Payment:
        return Payment(
            user_id=user_id,
            amount=amount,
            currency=(currency or "eur").lower(),
            status=PaymentStatus.COMPLETED.value,
            payment_method=PaymentMethod.STRIPE.value,
            subscription_period_start=subscription.current_period_start,
            subscription_period_end=subscription.current_period_end,
            next_payment_date=subscription.current_period_end,
            tier_at_payment=tier,
            stripe_subscription_id=subscription.id,
        )

    async def apply_checkout(self, user_id: str, subscription_id: str, tier: str) -> CheckoutOutcome:
        """
        Apply a completed checkout for ``user_id``.

        A trialing subscription only raises the profile tier; the first
        payment row is written when the trial converts. Otherwise one
        completed payment row is inserted.

        Raises:
            BillingError: Unknown profile (404), subscription no longer
                active or trialing (400)
            StripeAdapterError: Subscription lookup failed
        """
        profile = await self._get_profile(user_id)
        if profile is None:
            raise BillingError(f"Profile {user_id} not found", status_code=404)

        subscription = await self.stripe.retrieve_subscription(subscription_id)
        if not subscription.grants_access:
            logger.warning(
                "Checkout for user %s refers to subscription %s in status %s; not applied",
                user_id,
                subscription.id,
                subscription.status,
            )
            raise BillingError("Subscription is no longer active")

        if subscription.is_trialing() and profile.tier == tier:
            return CheckoutOutcome(
                outcome="already_processed",
                tier=tier,
                subscription_id=subscription.id,
            )

        profile.tier = tier

        if subscription.is_trialing():
            await self.db.commit()
            logger.info(
                "Trial started for user %s on subscription %s until %s",
                user_id,
                subscription.id,
                subscription.trial_end,
            )
            return CheckoutOutcome(outcome="trial", tier=tier, subscription_id=subscription.id)

        payment = self._ledger_row(
            user_id,
            subscription,
            tier,
            amount=(subscription.unit_amount or 0) / 100,
            currency=subscription.currency,
        )
        self.db.add(payment)
        await self.db.commit()
        logger.info("Recorded checkout payment %s for user %s", payment.id, user_id)
        return CheckoutOutcome(
            outcome="paid",
            tier=tier,
            payment_id=payment.id,
            subscription_id=subscription.id,
        )

    async def handle_checkout_completed(self, session_data: Any) -> Optional[CheckoutOutcome]:
        session = StripeCheckoutSession.from_api_response(session_data)
        if not session.user_id or not session.subscription_id:
            logger.warning("Checkout session %s lacks a user or subscription; ignored", session.id)
            return None
        if await self._payment_for_subscription(session.subscription_id) is not None:
            logger.info("Checkout session %s already reconciled", session.id)
            return CheckoutOutcome(
                outcome="already_processed",
                tier=session.tier,
                subscription_id=session.subscription_id,
            )
        try:
            return await self.apply_checkout(session.user_id, session.subscription_id, session.tier)
        except BillingError as e:
            if e.status_code != 400:
                raise
            # Stale event for a subscription that already ended
            logger.info("Checkout session %s ignored: %s", session.id, e.message)
            return None

    async def handle_invoice_payment_succeeded(self, invoice: Any) -> Optional[Payment]:
        """Record a renewal payment; the first invoice is covered by checkout."""
        invoice_id = _get(invoice, "id")
        amount_paid = _get(invoice, "amount_paid", 0)
        if _get(invoice, "billing_reason") in SKIPPED_BILLING_REASONS or not amount_paid:
            logger.info("Invoice %s skipped (reason=%s, amount=%s)", invoice_id, _get(invoice, "billing_reason"), amount_paid)
            return None

        subscription_id = invoice_subscription_id(invoice)
        if not subscription_id:
            logger.info("Invoice %s has no subscription; ignored", invoice_id)
            return None

        user_id = await self._resolve_owner(subscription_id, _invoice_metadata_user(invoice))
        try:
            subscription = await self.stripe.retrieve_subscription(subscription_id)
        except StripeAdapterError as e:
            logger.warning("Could not load subscription %s for invoice %s: %s", subscription_id, invoice_id, e)
            subscription = self._subscription_from_invoice(invoice, subscription_id)

        if user_id is None:
            user_id = await self._resolve_owner(None, subscription.metadata.get("userId"))
        if user_id is None:
            logger.warning("No owner found for invoice %s (subscription %s); dropped", invoice_id, subscription_id)
            return None

        previous = await self._payment_for_subscription(subscription_id)
        tier = previous.tier_at_payment if previous else subscription.metadata.get("tier", SubscriptionTier.PRO.value)

        payment = self._ledger_row(
            user_id,
            subscription,
            tier,
            amount=amount_paid / 100,
            currency=_get(invoice, "currency") or subscription.currency,
        )
        self.db.add(payment)
        profile = await self._get_profile(user_id)
        if profile is not None and profile.tier == SubscriptionTier.FREE.value:
            profile.tier = tier
        await self.db.commit()
        logger.info("Recorded renewal payment %s for user %s", payment.id, user_id)
        return payment

    @staticmethod
    def _subscription_from_invoice(invoice: Any, subscription_id: str) -> StripeSubscription:
        lines = _get(_get(invoice, "lines"), "data", [])
        period = _get(lines[0], "period") if lines else None
        return StripeSubscription(
            id=subscription_id,
            status="active",
            customer_id=None,
            current_period_start=from_timestamp(_get(period, "start")),
            current_period_end=from_timestamp(_get(period, "end")),
            trial_end=None,
            cancel_at_period_end=False,
            cancel_at=None,
            unit_amount=None,
            currency=_get(invoice, "currency"),
        )

    async def handle_subscription_deleted(self, subscription_data: Any) -> Optional[str]:
        """Downgrade the owner to free. Returns the affected user id."""
        subscription = StripeSubscription.from_api_response(subscription_data)
        user_id = await self._resolve_owner(subscription.id, subscription.metadata.get("userId"))
        if user_id is None:
            logger.warning("No owner found for deleted subscription %s", subscription.id)
            return None

        profile = await self._get_profile(user_id)
        if profile is None:
            return None
        if profile.has_unlimited_free or profile.is_admin:
            logger.info("Subscription %s deleted; user %s keeps tier %s", subscription.id, user_id, profile.tier)
            return user_id

        profile.tier = SubscriptionTier.FREE.value
        await self.db.commit()
        logger.info("Subscription %s deleted; user %s downgraded to free", subscription.id, user_id)
        return user_id

    async def handle_subscription_updated(self, subscription_data: Any) -> None:
        subscription = StripeSubscription.from_api_response(subscription_data)
        logger.info(
            "Subscription %s updated: status=%s cancel_at_period_end=%s",
            subscription.id,
            subscription.status,
            subscription.cancel_at_period_end,
        )

    async def _has_active_payment(self, user_id: str, now: datetime) -> bool:
        payment = await latest_completed_payment(self.db, user_id)
        if payment is None:
            return False
        period_end = ensure_utc(payment.subscription_period_end)
        return period_end is not None and period_end > now

    async def verify_checkout_session(self, user_id: str, session_id: str) -> CheckoutOutcome:
        """
        Confirm a checkout after the browser returns from Stripe.

        Idempotent with the webhook: a second call, or a call after the
        webhook already wrote the payment, changes nothing.

        Raises:
            BillingError: Unknown session (404), unpaid session (400),
                session of another user (403)
        """
        try:
            session = await self.stripe.retrieve_checkout_session(session_id)
        except StripeNotFoundError as e:
            raise BillingError("Checkout session not found", status_code=404) from e

        if session.payment_status not in PAID_SESSION_STATUSES:
            raise BillingError("Payment not completed")
        if session.user_id != user_id:
            raise BillingError("Session does not belong to this user", status_code=403)
        if not session.subscription_id:
            raise BillingError("Checkout session has no subscription")

        if await self._payment_for_subscription(session.subscription_id) is not None or (
            await self._has_active_payment(user_id, utcnow())
        ):
            return CheckoutOutcome(
                outcome="already_processed",
                tier=session.tier,
                subscription_id=session.subscription_id,
            )

        return await self.apply_checkout(user_id, session.subscription_id, session.tier)

    async def cancel_subscription(self, user_id: str, email: Optional[str]) -> CancellationResult:
        """
        Schedule cancellation of the user's subscription at period end.

        Raises:
            BillingError: No payment (404), expired (400), no subscription (404)
        """
        payment = await latest_completed_payment(self.db, user_id)
        if payment is None:
            raise BillingError("No active subscription found", status_code=404)

        now = utcnow()
        period_end = ensure_utc(payment.subscription_period_end)
        if period_end is not None and period_end <= now:
            raise BillingError("Subscription has already expired")

        subscription_id = payment.stripe_subscription_id
        if not subscription_id and email:
            found = await self.stripe.find_subscription_by_email(email)
            if found is not None:
                subscription_id = found.id
                payment.stripe_subscription_id = subscription_id
                await self.db.commit()
        if not subscription_id:
            raise BillingError("Subscription ID not found. Please contact support.", status_code=404)

        before = await self.stripe.retrieve_subscription(subscription_id)
        trialing = before.is_trialing(now)
        subscription = await self.stripe.cancel_at_period_end(subscription_id)

        access_until = subscription.current_period_end
        if trialing and before.trial_end is not None:
            access_until = before.trial_end

        logger.info("User %s scheduled cancellation of %s", user_id, subscription_id)
        return CancellationResult(
            cancel_at=subscription.cancel_at,
            access_until=access_until,
            is_trialing=trialing,
            trial_end=before.trial_end,
        )
