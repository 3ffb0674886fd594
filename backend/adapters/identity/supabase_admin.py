"""
Supabase Auth (GoTrue) admin adapter.

Privileged user management for the admin dashboard: create, look up,
update and delete identity-provider users, and generate sign-in links.
Authenticates with the service-role key.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


# Custom Exceptions
class IdentityProviderError(Exception):
    """Raised when the identity provider rejects a request or is unreachable."""
    pass


class IdentityNotFoundError(IdentityProviderError):
    """Raised when the requested user does not exist upstream."""
    pass


class IdentityConfigurationError(IdentityProviderError):
    """Raised when the provider URL or service key is missing."""
    pass


@dataclass
class IdentityUser:
    """Identity-provider user record."""

    id: str
    email: Optional[str]
    email_confirmed_at: Optional[datetime]
    last_sign_in_at: Optional[datetime]
    created_at: Optional[datetime]
    user_metadata: Dict[str, Any]

    @staticmethod
    def _parse_time(value: Optional[str]) -> Optional[datetime]:
        if not value:
            return None
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> "IdentityUser":
        """Create user from API response data."""
        return cls(
            id=data.get("id", ""),
            email=data.get("email"),
            email_confirmed_at=cls._parse_time(data.get("email_confirmed_at")),
            last_sign_in_at=cls._parse_time(data.get("last_sign_in_at")),
            created_at=cls._parse_time(data.get("created_at")),
            user_metadata=data.get("user_metadata") or {},
        )

    @property
    def is_confirmed(self) -> bool:
        return self.email_confirmed_at is not None


class SupabaseAdminAdapter:
    """
    Supabase Auth admin API adapter.

    All calls use the service-role key and must only be reachable from
    admin-guarded routes.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        timeout: int = 30,
    ):
        """
        Initialize Supabase admin adapter. Missing arguments fall back to settings.

        Args:
            base_url: Project URL (e.g., "https://abc.supabase.co")
            service_role_key: Service-role API key
            timeout: Request timeout in seconds (default: 30)
        """
        base_url = base_url or settings.supabase_url
        service_role_key = service_role_key or settings.supabase_service_role_key
        if not base_url or not service_role_key:
            raise IdentityConfigurationError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for user management"
            )
        self.base_url = base_url.rstrip("/")
        self.service_role_key = service_role_key
        self.timeout = timeout
        self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client with auth headers."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "apikey": self.service_role_key,
                    "Authorization": f"Bearer {self.service_role_key}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self):
        """Close the HTTP client connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def _build_url(self, endpoint: str) -> str:
        return f"{self.base_url}/auth/v1/{endpoint.lstrip('/')}"

    async def _request(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        try:
            return await self._get_client().request(method, self._build_url(endpoint), **kwargs)
        except httpx.HTTPError as e:
            logger.error("Failed to reach identity provider: %s", e)
            raise IdentityProviderError(f"Failed to reach identity provider: {e}") from e

    async def _handle_response(self, response: httpx.Response) -> Dict[str, Any]:
        """
        Handle API response and raise appropriate exceptions.

        Raises:
            IdentityNotFoundError: If the user does not exist (404)
            IdentityProviderError: For any other error status
        """
        if response.status_code == 404:
            raise IdentityNotFoundError("User not found")

        if response.status_code >= 400:
            try:
                error_data = response.json()
                error_message = (
                    error_data.get("msg")
                    or error_data.get("message")
                    or error_data.get("error_description")
                    or error_data.get("error")
                )
            except ValueError:
                error_message = None
            error_message = error_message or response.text or f"HTTP {response.status_code}"
            logger.error("Identity provider error [%s]: %s", response.status_code, error_message)
            raise IdentityProviderError(error_message)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise IdentityProviderError(f"Invalid JSON response: {e}") from e

    async def get_user(self, user_id: str) -> IdentityUser:
        response = await self._request("GET", f"admin/users/{user_id}")
        return IdentityUser.from_api_response(await self._handle_response(response))

    async def list_users(self, page: int = 1, per_page: int = 1000) -> List[IdentityUser]:
        response = await self._request(
            "GET", "admin/users", params={"page": page, "per_page": per_page}
        )
        data = await self._handle_response(response)
        return [IdentityUser.from_api_response(user) for user in data.get("users", [])]

    async def find_user_by_email(self, email: str) -> Optional[IdentityUser]:
        """Scan the user list for ``email`` (case-insensitive)."""
        target = email.strip().lower()
        page = 1
        while True:
            users = await self.list_users(page=page)
            for user in users:
                if (user.email or "").lower() == target:
                    return user
            if len(users) < 1000:
                return None
            page += 1

    async def create_user(
        self,
        email: str,
        password: str,
        user_metadata: Optional[Dict[str, Any]] = None,
        email_confirm: bool = True,
    ) -> IdentityUser:
        """Create a user with a password; confirmed unless ``email_confirm`` is False."""
        response = await self._request(
            "POST",
            "admin/users",
            json={
                "email": email,
                "password": password,
                "email_confirm": email_confirm,
                "user_metadata": user_metadata or {},
            },
        )
        user = IdentityUser.from_api_response(await self._handle_response(response))
        logger.info("Created identity user %s", user.id)
        return user

    async def update_user(
        self,
        user_id: str,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> IdentityUser:
        payload: Dict[str, Any] = {}
        if email:
            payload["email"] = email
            payload["email_confirm"] = True
        if password:
            payload["password"] = password
        response = await self._request("PUT", f"admin/users/{user_id}", json=payload)
        return IdentityUser.from_api_response(await self._handle_response(response))

    async def delete_user(self, user_id: str) -> None:
        response = await self._request("DELETE", f"admin/users/{user_id}")
        await self._handle_response(response)
        logger.info("Deleted identity user %s", user_id)

    async def generate_link(self, link_type: str, email: str, redirect_to: Optional[str] = None) -> str:
        """
        Generate an email action link ("magiclink", "recovery", "invite").

        Returns:
            The action link URL
        """
        payload: Dict[str, Any] = {"type": link_type, "email": email}
        if redirect_to:
            payload["redirect_to"] = redirect_to
        response = await self._request("POST", "admin/generate_link", json=payload)
        data = await self._handle_response(response)
        return data.get("action_link") or (data.get("properties") or {}).get("action_link", "")


def create_supabase_admin_adapter() -> SupabaseAdminAdapter:
    """Create a Supabase admin adapter from settings."""
    return SupabaseAdminAdapter()
