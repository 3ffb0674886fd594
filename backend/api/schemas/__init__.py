"""
API request and response schemas.
"""

from .ai import ChatRequest, ChatResponse, CreditsResponse
from .billing import (
    CheckoutRequest,
    CheckoutResponse,
    SubscriptionStatusResponse,
    WebhookEventType,
)
from .tasks import TaskCreate, TaskResponse, TaskUpdate

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "CreditsResponse",
    "CheckoutRequest",
    "CheckoutResponse",
    "SubscriptionStatusResponse",
    "WebhookEventType",
    "TaskCreate",
    "TaskResponse",
    "TaskUpdate",
]
