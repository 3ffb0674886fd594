"""
JWT verification for identity-provider access tokens.

Sessions are issued by Supabase Auth; this service only verifies the
HS256 access tokens it signs. ``create_access_token`` mints tokens of
the same shape for local development and tests.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt


@dataclass
class TokenPayload:
    """JWT token payload structure."""

    sub: str  # Subject (user ID)
    exp: datetime  # Expiration time
    iat: datetime  # Issued at
    email: str | None = None
    role: str | None = None  # Provider role, e.g. "authenticated"


class TokenService:
    """Service for creating and validating JWT access tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        audience: str = "authenticated",
        access_token_expire_minutes: int = 60,
    ):
        """
        Initialize the token service.

        Args:
            secret_key: Provider JWT secret used to sign tokens
            algorithm: JWT algorithm (default: HS256)
            audience: Expected ``aud`` claim
            access_token_expire_minutes: Lifetime of tokens minted locally
        """
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._audience = audience
        self._access_token_expire_minutes = access_token_expire_minutes

    def create_access_token(
        self,
        user_id: str,
        email: str | None = None,
        expire_minutes: int | None = None,
    ) -> str:
        """
        Create an access token shaped like a provider-issued one.

        Args:
            user_id: User ID to encode in the token
            email: Optional email to include
            expire_minutes: Override the default lifetime (negative values
                produce an already-expired token)

        Returns:
            Encoded JWT access token
        """
        now = datetime.now(UTC)
        minutes = (
            expire_minutes if expire_minutes is not None else self._access_token_expire_minutes
        )
        payload = {
            "sub": user_id,
            "aud": self._audience,
            "exp": now + timedelta(minutes=minutes),
            "iat": now,
            "role": "authenticated",
        }
        if email:
            payload["email"] = email

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify_access_token(self, token: str) -> TokenPayload | None:
        """
        Decode and validate an access token.

        Args:
            token: JWT token to verify

        Returns:
            TokenPayload if valid, None if invalid, expired or for another audience
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                audience=self._audience,
            )

            for field in ("sub", "exp"):
                if field not in payload:
                    raise JWTError(f"Missing required field: {field}")

            return TokenPayload(
                sub=payload["sub"],
                exp=datetime.fromtimestamp(payload["exp"], tz=UTC),
                iat=datetime.fromtimestamp(payload.get("iat", 0), tz=UTC),
                email=payload.get("email"),
                role=payload.get("role"),
            )
        except JWTError:
            return None
