"""
Rate limiting using slowapi.

Limits are keyed on the client IP. Storage is Redis when ``REDIS_URL``
is set and process memory otherwise.

Rate Limits:
- Checkout session creation: 10 per minute
- AI chat: 30 per minute
- CMS sync: 5 per minute
- Default: settings.rate_limit_default (100 per minute)
"""

import ipaddress
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


def _public_ip(value: str) -> str | None:
    """Return ``value`` if it is a public IP address.

    Private and loopback addresses in forwarding headers can be spoofed
    to share someone else's bucket, so they are ignored.
    """
    try:
        addr = ipaddress.ip_address(value.strip())
    except ValueError:
        return None
    if addr.is_private or addr.is_loopback or addr.is_link_local:
        return None
    return str(addr)


def _get_client_ip(request: Request) -> str:
    """Client IP from proxy headers, falling back to the socket address."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidate = _public_ip(forwarded.split(",")[0])
        if candidate:
            return candidate
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidate = _public_ip(real_ip)
        if candidate:
            return candidate
    return get_remote_address(request)


RATE_LIMITS = {
    "checkout": "10/minute",
    "ai_chat": "30/minute",
    "cms_sync": "5/minute",
    "default": settings.rate_limit_default,
}

_storage_uri = settings.redis_url if settings.redis_url else "memory://"

if not settings.redis_url and settings.is_production:
    logger.warning("Rate limiter using in-memory storage; limits are per worker")

limiter = Limiter(
    key_func=_get_client_ip,
    storage_uri=_storage_uri,
    default_limits=[RATE_LIMITS["default"]],
)


def get_rate_limit(endpoint: str) -> str:
    """
    Get rate limit configuration for a specific endpoint.

    Example:
        >>> get_rate_limit("checkout")
        "10/minute"
        >>> get_rate_limit("unknown")
        "100/minute"
    """
    return RATE_LIMITS.get(endpoint, RATE_LIMITS["default"])
