# CMS Adapters
# Sanity integration

from .sanity_adapter import (
    SanityAdapter,
    SanityConfigurationError,
    SanityConnection,
    SanityError,
    create_sanity_adapter,
    portable_text_to_html,
)

__all__ = [
    "SanityAdapter",
    "SanityConnection",
    "SanityError",
    "SanityConfigurationError",
    "create_sanity_adapter",
    "portable_text_to_html",
]
