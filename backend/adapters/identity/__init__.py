# Identity Adapters
# Supabase Auth admin integration

from .supabase_admin import (
    IdentityConfigurationError,
    IdentityNotFoundError,
    IdentityProviderError,
    IdentityUser,
    SupabaseAdminAdapter,
    create_supabase_admin_adapter,
)

__all__ = [
    "SupabaseAdminAdapter",
    "IdentityUser",
    "IdentityProviderError",
    "IdentityNotFoundError",
    "IdentityConfigurationError",
    "create_supabase_admin_adapter",
]
