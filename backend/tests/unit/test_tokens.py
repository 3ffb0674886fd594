"""
Unit tests for access-token verification.
"""

from jose import jwt

from core.security import TokenService

SECRET = "test-jwt-secret"


def service() -> TokenService:
    return TokenService(secret_key=SECRET)


class TestVerifyAccessToken:
    def test_round_trip_claims(self):
        token = service().create_access_token("user-1", email="a@example.com")

        payload = service().verify_access_token(token)

        assert payload.sub == "user-1"
        assert payload.email == "a@example.com"
        assert payload.role == "authenticated"

    def test_expired(self):
        token = service().create_access_token("user-1", expire_minutes=-1)

        assert service().verify_access_token(token) is None

    def test_wrong_secret(self):
        token = TokenService(secret_key="other").create_access_token("user-1")

        assert service().verify_access_token(token) is None

    def test_wrong_audience(self):
        token = TokenService(secret_key=SECRET, audience="anon").create_access_token("user-1")

        assert service().verify_access_token(token) is None

    def test_missing_subject(self):
        token = jwt.encode({"aud": "authenticated", "exp": 4102444800}, SECRET, algorithm="HS256")

        assert service().verify_access_token(token) is None

    def test_garbage(self):
        assert service().verify_access_token("not-a-jwt") is None
