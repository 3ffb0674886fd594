"""
Stripe billing adapter for subscription management.

Wraps the Stripe SDK for checkout sessions, subscription lookups,
cancellation and webhook signature verification. SDK calls are blocking,
so they run in a worker thread.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import stripe

from core.dates import from_timestamp, utcnow
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

ACCESS_GRANTING_STATUSES = ("active", "trialing")


# Custom Exceptions
class StripeAdapterError(Exception):
    """Base exception for Stripe adapter errors."""

    pass


class StripeConfigurationError(StripeAdapterError):
    """Raised when Stripe keys or prices are not configured."""

    pass


class StripeNotFoundError(StripeAdapterError):
    """Raised when a session, subscription or customer does not exist."""

    pass


class StripeSignatureError(StripeAdapterError):
    """Raised when a webhook payload fails signature verification."""

    pass


def _value(obj: Any, key: str, default: Any = None) -> Any:
    """Read ``key`` from a Stripe object or plain dict."""
    if obj is None:
        return default
    try:
        value = obj[key]
    except (KeyError, TypeError, IndexError):
        return default
    return default if value is None else value


def _object_id(obj: Any) -> str | None:
    """Stripe fields hold either an id string or an expanded object."""
    if obj is None or isinstance(obj, str):
        return obj
    return _value(obj, "id")


def _first_item(subscription: Any) -> Any:
    items = _value(_value(subscription, "items"), "data", [])
    return items[0] if items else None


# Dataclasses
@dataclass
class StripeSubscription:
    """The subset of a Stripe subscription the app relies on."""

    id: str
    status: str  # active, trialing, past_due, canceled, incomplete, unpaid, paused
    customer_id: str | None
    current_period_start: datetime | None
    current_period_end: datetime | None
    trial_end: datetime | None
    cancel_at_period_end: bool
    cancel_at: datetime | None
    unit_amount: int | None
    currency: str | None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: Any) -> "StripeSubscription":
        """Create subscription from a Stripe object.

        Newer API versions report billing periods on the subscription
        item rather than the subscription itself; both are supported.
        """
        item = _first_item(data)
        price = _value(item, "price")
        period_start = _value(data, "current_period_start") or _value(item, "current_period_start")
        period_end = _value(data, "current_period_end") or _value(item, "current_period_end")
        metadata = _value(data, "metadata")
        return cls(
            id=_value(data, "id", ""),
            status=_value(data, "status", ""),
            customer_id=_object_id(_value(data, "customer")),
            current_period_start=from_timestamp(period_start),
            current_period_end=from_timestamp(period_end),
            trial_end=from_timestamp(_value(data, "trial_end")),
            cancel_at_period_end=bool(_value(data, "cancel_at_period_end", False)),
            cancel_at=from_timestamp(_value(data, "cancel_at")),
            unit_amount=_value(price, "unit_amount"),
            currency=_value(price, "currency") or _value(data, "currency"),
            metadata=dict(metadata) if metadata else {},
        )

    @property
    def grants_access(self) -> bool:
        return self.status in ACCESS_GRANTING_STATUSES

    def is_trialing(self, now: datetime | None = None) -> bool:
        """Trial is running: status says so or the trial end is still ahead."""
        now = now or utcnow()
        return self.status == "trialing" or (self.trial_end is not None and self.trial_end > now)

    def access_end_date(self, now: datetime | None = None) -> datetime | None:
        """Trial end while a trial outlasts the billing period, else the period end."""
        if (
            self.is_trialing(now)
            and self.trial_end is not None
            and (self.current_period_end is None or self.trial_end > self.current_period_end)
        ):
            return self.trial_end
        return self.current_period_end


@dataclass
class StripeCheckoutSession:
    """Stripe Checkout session information."""

    id: str
    url: str | None
    status: str | None
    payment_status: str | None
    subscription_id: str | None
    client_reference_id: str | None
    customer_email: str | None
    metadata: dict = field(default_factory=dict)

    @classmethod
    def from_api_response(cls, data: Any) -> "StripeCheckoutSession":
        """Create checkout session from a Stripe object."""
        metadata = _value(data, "metadata")
        details = _value(data, "customer_details")
        return cls(
            id=_value(data, "id", ""),
            url=_value(data, "url"),
            status=_value(data, "status"),
            payment_status=_value(data, "payment_status"),
            subscription_id=_object_id(_value(data, "subscription")),
            client_reference_id=_value(data, "client_reference_id"),
            customer_email=_value(data, "customer_email") or _value(details, "email"),
            metadata=dict(metadata) if metadata else {},
        )

    @property
    def user_id(self) -> str | None:
        return self.metadata.get("userId") or self.client_reference_id

    @property
    def tier(self) -> str:
        return self.metadata.get("tier") or "pro"


class StripeAdapter:
    """
    Stripe API adapter for subscription billing.

    Every SDK call passes the API key explicitly so that no global SDK
    state is shared between adapters.
    """

    def __init__(
        self,
        api_key: str | None,
        webhook_secret: str | None = None,
        pro_price_id: str | None = None,
    ):
        """
        Initialize Stripe adapter.

        Args:
            api_key: Stripe secret key
            webhook_secret: Signing secret for webhook endpoints
            pro_price_id: Price id of the pro plan
        """
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.pro_price_id = pro_price_id

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _require_key(self) -> None:
        if not self.api_key:
            raise StripeConfigurationError("Stripe is not configured")

    async def _call(self, action: str, fn, *args, **kwargs) -> Any:
        """Run a blocking SDK call and translate Stripe errors."""
        self._require_key()
        try:
            return await asyncio.to_thread(fn, *args, api_key=self.api_key, **kwargs)
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing":
                raise StripeNotFoundError(f"{action}: not found") from e
            logger.error("Stripe error during %s: %s", action, e)
            raise StripeAdapterError(f"{action} failed: {e.user_message or e}") from e
        except stripe.StripeError as e:
            logger.error("Stripe error during %s: %s", action, e)
            raise StripeAdapterError(f"{action} failed: {e.user_message or e}") from e

    async def create_checkout_session(
        self,
        user_id: str,
        email: str | None,
        tier: str,
        success_url: str,
        cancel_url: str,
        trial_days: int | None = None,
    ) -> StripeCheckoutSession:
        """
        Create a subscription checkout session for the pro plan.

        Raises:
            StripeConfigurationError: Missing key or invalid price id
            StripeAdapterError: Stripe rejected the request
        """
        price_id = self.pro_price_id
        if not price_id or not price_id.startswith("price_"):
            raise StripeConfigurationError(
                "Stripe price id is missing or invalid; it must start with 'price_'"
            )

        subscription_data: dict[str, Any] = {"metadata": {"userId": user_id, "tier": tier}}
        if trial_days:
            subscription_data["trial_period_days"] = trial_days

        params: dict[str, Any] = {
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [{"price": price_id, "quantity": 1}],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "client_reference_id": user_id,
            "metadata": {"userId": user_id, "tier": tier},
            "subscription_data": subscription_data,
        }
        if email:
            params["customer_email"] = email

        session = await self._call("Create checkout session", stripe.checkout.Session.create, **params)
        logger.info("Created checkout session %s for user %s", _value(session, "id"), user_id)
        return StripeCheckoutSession.from_api_response(session)

    async def retrieve_checkout_session(self, session_id: str) -> StripeCheckoutSession:
        session = await self._call(
            "Retrieve checkout session", stripe.checkout.Session.retrieve, session_id
        )
        return StripeCheckoutSession.from_api_response(session)

    async def retrieve_subscription(self, subscription_id: str) -> StripeSubscription:
        subscription = await self._call(
            "Retrieve subscription", stripe.Subscription.retrieve, subscription_id
        )
        return StripeSubscription.from_api_response(subscription)

    async def find_subscription_by_email(self, email: str) -> StripeSubscription | None:
        """
        Find an active or trialing subscription for a customer email.

        Used when no local payment row carries a subscription id yet.
        """
        customers = await self._call("List customers", stripe.Customer.list, email=email, limit=10)
        for customer in _value(customers, "data", []):
            subscriptions = await self._call(
                "List subscriptions",
                stripe.Subscription.list,
                customer=_value(customer, "id"),
                status="all",
                limit=10,
            )
            for subscription in _value(subscriptions, "data", []):
                if _value(subscription, "status") in ACCESS_GRANTING_STATUSES:
                    return StripeSubscription.from_api_response(subscription)
        return None

    async def cancel_at_period_end(self, subscription_id: str) -> StripeSubscription:
        """Schedule cancellation at the end of the current period (or trial)."""
        subscription = await self._call(
            "Cancel subscription",
            stripe.Subscription.modify,
            subscription_id,
            cancel_at_period_end=True,
        )
        logger.info("Scheduled cancellation of subscription %s", subscription_id)
        return StripeSubscription.from_api_response(subscription)

    def construct_event(self, payload: bytes, signature: str) -> Any:
        """
        Verify a webhook payload and return the parsed event.

        Raises:
            StripeConfigurationError: No webhook secret configured
            StripeSignatureError: Signature or payload invalid
        """
        if not self.webhook_secret:
            raise StripeConfigurationError("Stripe webhook secret is not configured")
        try:
            return stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise StripeSignatureError("Invalid signature") from e
        except ValueError as e:
            raise StripeSignatureError("Invalid payload") from e


def create_stripe_adapter() -> StripeAdapter:
    """Create a Stripe adapter from settings."""
    return StripeAdapter(
        api_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        pro_price_id=settings.stripe_pro_price_id,
    )
