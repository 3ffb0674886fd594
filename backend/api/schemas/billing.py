"""
Billing and subscription request/response schemas.
"""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class WebhookEventType(StrEnum):
    """Stripe webhook events the service reacts to."""

    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    CUSTOMER_SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    CUSTOMER_SUBSCRIPTION_UPDATED = "customer.subscription.updated"


class CheckoutRequest(BaseModel):
    """Request to create a checkout session."""

    tier: str = Field(..., description="Target tier; only 'pro' can be purchased")

    model_config = {"json_schema_extra": {"example": {"tier": "pro"}}}


class CheckoutResponse(BaseModel):
    """Response containing the hosted checkout page."""

    session_id: str = Field(..., serialization_alias="sessionId")
    url: str | None = None


class VerifySessionRequest(BaseModel):
    session_id: str = Field(..., alias="sessionId", min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class VerifySessionResponse(BaseModel):
    success: bool = True
    already_processed: bool = False
    outcome: str
    tier: str


class SubscriptionStatusResponse(BaseModel):
    """Current subscription status for a user."""

    has_active_subscription: bool
    subscription_end_date: datetime | None = None
    tier: str
    is_admin: bool = False
    status: str | None = None
    is_cancelled: bool = False
    cancel_at: datetime | None = None
    is_trialing: bool = False
    trial_end: datetime | None = None
    trial_days_remaining: int | None = None
    message: str | None = None


class CancelSubscriptionResponse(BaseModel):
    success: bool = True
    message: str
    cancel_at: datetime | None = Field(None, serialization_alias="cancelAt")
    current_period_end: datetime | None = Field(None, serialization_alias="currentPeriodEnd")
    is_trialing: bool = Field(False, serialization_alias="isTrialing")
    trial_end: datetime | None = Field(None, serialization_alias="trialEnd")


class WebhookResponse(BaseModel):
    received: bool = True
