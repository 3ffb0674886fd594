"""
Integration tests for rate limiting.
"""

import pytest
from fastapi import status
from httpx import AsyncClient
from starlette.requests import Request

from adapters.payments import StripeCheckoutSession
from api.middleware.rate_limit import _get_client_ip


def request_with(headers: dict, client_host: str = "10.0.0.1") -> Request:
    scope = {
        "type": "http",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (client_host, 1234),
    }
    return Request(scope)


class TestClientIp:
    def test_public_forwarded_address(self):
        assert _get_client_ip(request_with({"X-Forwarded-For": "8.8.8.8, 10.0.0.2"})) == "8.8.8.8"

    def test_private_forwarded_address_is_ignored(self):
        assert _get_client_ip(request_with({"X-Forwarded-For": "192.168.1.5"})) == "10.0.0.1"

    def test_real_ip_header(self):
        assert _get_client_ip(request_with({"X-Real-IP": "1.1.1.1"})) == "1.1.1.1"


class TestCheckoutRateLimit:
    @pytest.mark.asyncio
    async def test_eleventh_request_is_limited(
        self, async_client: AsyncClient, auth_headers: dict, stripe_mock, free_user
    ):
        stripe_mock.create_checkout_session.return_value = StripeCheckoutSession(
            id="cs_1",
            url="https://checkout.stripe.com/c/pay/cs_1",
            status="open",
            payment_status="unpaid",
            subscription_id=None,
            client_reference_id=free_user.id,
            customer_email=free_user.email,
        )

        for _ in range(10):
            response = await async_client.post(
                "/api/stripe/create-checkout-session", json={"tier": "pro"}, headers=auth_headers
            )
            assert response.status_code == status.HTTP_200_OK

        response = await async_client.post(
            "/api/stripe/create-checkout-session", json={"tier": "pro"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert "error" in response.json()
