"""
Stripe billing API routes.
"""

import logging
from typing import Annotated, Any

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import (
    StripeAdapter,
    StripeAdapterError,
    StripeConfigurationError,
    StripeSignatureError,
)
from api.dependencies import get_current_user, get_stripe_adapter
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.billing import (
    CancelSubscriptionResponse,
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionStatusResponse,
    VerifySessionRequest,
    VerifySessionResponse,
    WebhookEventType,
    WebhookResponse,
)
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile, SubscriptionTier
from services.billing_reconciler import BillingError, BillingReconciler
from services.subscription_status import SubscriptionStatusResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stripe", tags=["billing"])

PROCESSED_EVENT_TTL_SECONDS = 24 * 60 * 60


def _billing_http_error(e: BillingError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/create-checkout-session", response_model=CheckoutResponse)
@limiter.limit(get_rate_limit("checkout"))
async def create_checkout_session(
    request: Request,
    body: CheckoutRequest,
    current_user: Annotated[Profile, Depends(get_current_user)],
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    """
    Create a Stripe Checkout session for the pro plan with a trial.

    Returns the session id and the hosted checkout URL.
    """
    if body.tier != SubscriptionTier.PRO.value:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid tier. Only 'pro' can be purchased",
        )

    frontend_url = settings.frontend_url.rstrip("/")
    try:
        session = await stripe_adapter.create_checkout_session(
            user_id=current_user.id,
            email=current_user.email,
            tier=body.tier,
            success_url=f"{frontend_url}/payment/success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{frontend_url}/pricing?canceled=true",
            trial_days=settings.stripe_trial_days,
        )
    except StripeConfigurationError as e:
        logger.error("Checkout unavailable: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e),
        ) from e
    except StripeAdapterError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from e

    return CheckoutResponse(session_id=session.id, url=session.url)


@router.post("/verify-session", response_model=VerifySessionResponse)
async def verify_session(
    body: VerifySessionRequest,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    """
    Confirm a checkout after the redirect back from Stripe.

    Safe to call repeatedly and safe to race with the webhook.
    """
    reconciler = BillingReconciler(db, stripe_adapter)
    try:
        outcome = await reconciler.verify_checkout_session(current_user.id, body.session_id)
    except BillingError as e:
        raise _billing_http_error(e) from e
    except StripeAdapterError as e:
        logger.error("Session verification failed for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to verify session",
        ) from e

    return VerifySessionResponse(
        already_processed=outcome.already_processed,
        outcome=outcome.outcome,
        tier=outcome.tier,
    )


@router.get("/subscription-status", response_model=SubscriptionStatusResponse)
async def subscription_status(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    state = await SubscriptionStatusResolver(db, stripe_adapter).resolve(current_user)
    return SubscriptionStatusResponse(**state.as_dict())


@router.post("/cancel-subscription", response_model=CancelSubscriptionResponse)
async def cancel_subscription(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    """Schedule cancellation at the end of the current period or trial."""
    reconciler = BillingReconciler(db, stripe_adapter)
    try:
        result = await reconciler.cancel_subscription(current_user.id, current_user.email)
    except BillingError as e:
        raise _billing_http_error(e) from e
    except StripeAdapterError as e:
        logger.error("Cancellation failed for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to cancel subscription",
        ) from e

    return CancelSubscriptionResponse(
        message="Subscription will be cancelled at the end of the current period",
        cancel_at=result.cancel_at,
        current_period_end=result.access_until,
        is_trialing=result.is_trialing,
        trial_end=result.trial_end,
    )


async def _already_processed(event_id: str) -> bool:
    if not settings.redis_url:
        return False
    client = aioredis.from_url(settings.redis_url)
    try:
        return bool(await client.exists(f"webhook:processed:{event_id}"))
    except RedisError as e:
        logger.warning("Webhook idempotency check unavailable (Redis error): %s", e)
        return False
    finally:
        await client.aclose()


async def _mark_processed(event_id: str) -> None:
    if not settings.redis_url:
        return
    client = aioredis.from_url(settings.redis_url)
    try:
        await client.setex(f"webhook:processed:{event_id}", PROCESSED_EVENT_TTL_SECONDS, "1")
    except RedisError as e:
        logger.warning("Could not record processed webhook %s: %s", event_id, e)
    finally:
        await client.aclose()


async def _dispatch(reconciler: BillingReconciler, event_type: str, data: Any) -> None:
    if event_type == WebhookEventType.CHECKOUT_SESSION_COMPLETED:
        await reconciler.handle_checkout_completed(data)
    elif event_type == WebhookEventType.INVOICE_PAYMENT_SUCCEEDED:
        await reconciler.handle_invoice_payment_succeeded(data)
    elif event_type == WebhookEventType.CUSTOMER_SUBSCRIPTION_DELETED:
        await reconciler.handle_subscription_deleted(data)
    elif event_type == WebhookEventType.CUSTOMER_SUBSCRIPTION_UPDATED:
        await reconciler.handle_subscription_updated(data)
    else:
        logger.info("Unhandled webhook event type %s", event_type)


@router.post("/webhook", response_model=WebhookResponse)
@limiter.exempt
async def handle_webhook(
    request: Request,
    stripe_signature: Annotated[str | None, Header(alias="stripe-signature")] = None,
    db: AsyncSession = Depends(get_db),
    stripe_adapter: StripeAdapter = Depends(get_stripe_adapter),
):
    """
    Handle Stripe webhook events.

    - checkout.session.completed: trial start or first payment
    - invoice.payment_succeeded: renewal payment
    - customer.subscription.deleted: downgrade to free
    - customer.subscription.updated: logged
    """
    if not stripe_signature:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing stripe-signature header",
        )

    payload = await request.body()
    try:
        event = stripe_adapter.construct_event(payload, stripe_signature)
    except StripeConfigurationError as e:
        logger.error("Webhook rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook secret is not configured",
        ) from e
    except StripeSignatureError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Webhook Error: {e}",
        ) from e

    event_id = event["id"]
    event_type = event["type"]
    log_extra = {"event_type": event_type, "event_id": event_id}

    if await _already_processed(event_id):
        logger.info("Duplicate webhook event %s skipped", event_id, extra=log_extra)
        return WebhookResponse()

    reconciler = BillingReconciler(db, stripe_adapter)
    try:
        await _dispatch(reconciler, event_type, event["data"]["object"])
    except (BillingError, StripeAdapterError, SQLAlchemyError) as e:
        await db.rollback()
        logger.error("Webhook %s (%s) failed: %s", event_id, event_type, e, extra=log_extra)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Webhook handler failed",
        ) from e

    await _mark_processed(event_id)
    logger.info("Processed webhook event %s", event_type, extra=log_extra)
    return WebhookResponse()
