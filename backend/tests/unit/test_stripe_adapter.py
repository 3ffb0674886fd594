"""
Unit tests for the Stripe adapter.

SDK calls are patched; webhook signatures are computed the way Stripe
computes them so verification runs for real.
"""

import hashlib
import hmac
import json
import time
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
import stripe

from adapters.payments import (
    StripeAdapter,
    StripeAdapterError,
    StripeCheckoutSession,
    StripeConfigurationError,
    StripeNotFoundError,
    StripeSignatureError,
    StripeSubscription,
)

WEBHOOK_SECRET = "whsec_test_secret"
NOW = datetime(2025, 6, 15, 12, 0, tzinfo=UTC)


def sign(payload: bytes, secret: str = WEBHOOK_SECRET) -> str:
    timestamp = int(time.time())
    signed = f"{timestamp}.{payload.decode()}".encode()
    digest = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


@pytest.fixture
def adapter() -> StripeAdapter:
    return StripeAdapter(
        api_key="sk_test_123",
        webhook_secret=WEBHOOK_SECRET,
        pro_price_id="price_pro_monthly",
    )


class TestSubscriptionParsing:
    def test_period_from_subscription_item(self):
        start = int(NOW.timestamp())
        data = {
            "id": "sub_1",
            "status": "active",
            "customer": {"id": "cus_1"},
            "items": {
                "data": [
                    {
                        "current_period_start": start,
                        "current_period_end": start + 30 * 86400,
                        "price": {"unit_amount": 999, "currency": "eur"},
                    }
                ]
            },
            "metadata": {"userId": "user-1"},
        }

        subscription = StripeSubscription.from_api_response(data)

        assert subscription.customer_id == "cus_1"
        assert subscription.current_period_start == NOW
        assert subscription.current_period_end == NOW + timedelta(days=30)
        assert subscription.unit_amount == 999
        assert subscription.metadata == {"userId": "user-1"}
        assert subscription.grants_access

    def test_trial_outlasting_period_sets_access_end(self):
        subscription = StripeSubscription.from_api_response(
            {
                "id": "sub_1",
                "status": "trialing",
                "current_period_end": int((NOW + timedelta(days=1)).timestamp()),
                "trial_end": int((NOW + timedelta(days=7)).timestamp()),
            }
        )

        assert subscription.is_trialing(NOW)
        assert subscription.access_end_date(NOW) == NOW + timedelta(days=7)

    def test_canceled_subscription_has_no_access(self):
        assert not StripeSubscription.from_api_response({"id": "sub_1", "status": "canceled"}).grants_access


class TestCheckoutSessionParsing:
    def test_user_and_tier_from_metadata(self):
        session = StripeCheckoutSession.from_api_response(
            {
                "id": "cs_1",
                "payment_status": "paid",
                "subscription": "sub_1",
                "client_reference_id": "fallback",
                "metadata": {"userId": "user-1", "tier": "pro"},
                "customer_details": {"email": "a@example.com"},
            }
        )

        assert session.user_id == "user-1"
        assert session.tier == "pro"
        assert session.customer_email == "a@example.com"

    def test_client_reference_fallback(self):
        session = StripeCheckoutSession.from_api_response({"id": "cs_1", "client_reference_id": "user-2"})
        assert session.user_id == "user-2"
        assert session.tier == "pro"


class TestAdapterCalls:
    @pytest.mark.asyncio
    async def test_checkout_session_parameters(self, adapter: StripeAdapter):
        with patch("stripe.checkout.Session.create", return_value={"id": "cs_1", "url": "https://checkout"}) as create:
            session = await adapter.create_checkout_session(
                user_id="user-1",
                email="a@example.com",
                tier="pro",
                success_url="https://app/success",
                cancel_url="https://app/cancel",
                trial_days=7,
            )

        kwargs = create.call_args.kwargs
        assert kwargs["api_key"] == "sk_test_123"
        assert kwargs["mode"] == "subscription"
        assert kwargs["line_items"] == [{"price": "price_pro_monthly", "quantity": 1}]
        assert kwargs["subscription_data"]["trial_period_days"] == 7
        assert kwargs["metadata"] == {"userId": "user-1", "tier": "pro"}
        assert session.url == "https://checkout"

    @pytest.mark.asyncio
    async def test_invalid_price_id(self):
        adapter = StripeAdapter(api_key="sk_test_123", pro_price_id="prod_wrong")
        with pytest.raises(StripeConfigurationError):
            await adapter.create_checkout_session("u", None, "pro", "s", "c")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        adapter = StripeAdapter(api_key=None)
        assert adapter.is_configured is False
        with pytest.raises(StripeConfigurationError):
            await adapter.retrieve_subscription("sub_1")

    @pytest.mark.asyncio
    async def test_missing_resource(self, adapter: StripeAdapter):
        error = stripe.InvalidRequestError("No such subscription", "id", code="resource_missing")
        with patch("stripe.Subscription.retrieve", side_effect=error):
            with pytest.raises(StripeNotFoundError):
                await adapter.retrieve_subscription("sub_missing")

    @pytest.mark.asyncio
    async def test_api_error(self, adapter: StripeAdapter):
        with patch("stripe.Subscription.modify", side_effect=stripe.APIConnectionError("offline")):
            with pytest.raises(StripeAdapterError):
                await adapter.cancel_at_period_end("sub_1")

    @pytest.mark.asyncio
    async def test_find_subscription_by_email(self, adapter: StripeAdapter):
        customers = {"data": [{"id": "cus_1"}]}
        subscriptions = {
            "data": [
                {"id": "sub_old", "status": "canceled"},
                {"id": "sub_live", "status": "trialing"},
            ]
        }
        with patch("stripe.Customer.list", return_value=customers), patch(
            "stripe.Subscription.list", return_value=subscriptions
        ) as list_subscriptions:
            found = await adapter.find_subscription_by_email("a@example.com")

        assert found.id == "sub_live"
        assert list_subscriptions.call_args.kwargs["customer"] == "cus_1"


class TestConstructEvent:
    def test_valid_signature(self, adapter: StripeAdapter):
        payload = json.dumps(
            {"id": "evt_1", "object": "event", "type": "invoice.payment_succeeded", "data": {"object": {}}}
        ).encode()

        event = adapter.construct_event(payload, sign(payload))

        assert event["id"] == "evt_1"
        assert event["type"] == "invoice.payment_succeeded"

    def test_wrong_secret(self, adapter: StripeAdapter):
        payload = b'{"id": "evt_1", "object": "event"}'
        with pytest.raises(StripeSignatureError):
            adapter.construct_event(payload, sign(payload, secret="whsec_other"))

    def test_missing_secret(self):
        with pytest.raises(StripeConfigurationError):
            StripeAdapter(api_key="sk_test_123").construct_event(b"{}", "t=1,v1=abc")
