# Payment Adapters
# Stripe integration

from .stripe_adapter import (
    StripeAdapter,
    StripeAdapterError,
    StripeCheckoutSession,
    StripeConfigurationError,
    StripeNotFoundError,
    StripeSignatureError,
    StripeSubscription,
    create_stripe_adapter,
)

__all__ = [
    "StripeAdapter",
    "StripeAdapterError",
    "StripeConfigurationError",
    "StripeNotFoundError",
    "StripeSignatureError",
    "StripeSubscription",
    "StripeCheckoutSession",
    "create_stripe_adapter",
]
