"""
Integration tests for profile, category, competitor and health routes.
"""

from uuid import uuid4

import pytest
from fastapi import status
from httpx import AsyncClient

from api.dependencies import token_service


class TestProfile:
    """Tests for /api/profile."""

    @pytest.mark.asyncio
    async def test_get_profile(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.get("/api/profile", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["email"] == "free@example.com"
        assert data["tier"] == "free"
        assert data["social_links"] == []

    @pytest.mark.asyncio
    async def test_first_request_provisions_profile(self, async_client: AsyncClient):
        user_id = str(uuid4())
        token = token_service.create_access_token(user_id=user_id, email="nov@example.com")

        response = await async_client.get("/api/profile", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["id"] == user_id
        assert response.json()["tier"] == "free"
        assert response.json()["role"] == "user"

    @pytest.mark.asyncio
    async def test_update_goals_and_social_links(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.put(
            "/api/profile",
            json={
                "business_name": "Kafić Centar",
                "monthly_goal_short": 12,
                "social_links": ["https://instagram.com/kafic", "https://tiktok.com/@kafic"],
            },
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["business_name"] == "Kafić Centar"
        assert data["monthly_goal_short"] == 12
        assert sorted(link["url"] for link in data["social_links"]) == [
            "https://instagram.com/kafic",
            "https://tiktok.com/@kafic",
        ]

        replaced = await async_client.put(
            "/api/profile", json={"social_links": ["https://youtube.com/@kafic"]}, headers=auth_headers
        )
        assert [link["url"] for link in replaced.json()["social_links"]] == ["https://youtube.com/@kafic"]

    @pytest.mark.asyncio
    async def test_negative_goal_rejected(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.put("/api/profile", json={"monthly_goal_long": -1}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_invalid_token(self, async_client: AsyncClient):
        response = await async_client.get("/api/profile", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"error": "Invalid or expired token"}


class TestCategories:
    """Tests for /api/categories."""

    @pytest.mark.asyncio
    async def test_create_with_default_color(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post("/api/categories", json={"name": "Edukacija"}, headers=auth_headers)

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["color"] == "#3b82f6"

    @pytest.mark.asyncio
    async def test_invalid_color(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/categories", json={"name": "X", "color": "red"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"].startswith("color")

    @pytest.mark.asyncio
    async def test_cap_of_twenty(self, async_client: AsyncClient, auth_headers: dict):
        for index in range(20):
            created = await async_client.post(
                "/api/categories", json={"name": f"Kategorija {index}"}, headers=auth_headers
            )
            assert created.status_code == status.HTTP_201_CREATED

        response = await async_client.post("/api/categories", json={"name": "Višak"}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Maksimalan broj kategorija je 20"}

    @pytest.mark.asyncio
    async def test_update_and_delete(self, async_client: AsyncClient, auth_headers: dict):
        category = (
            await async_client.post("/api/categories", json={"name": "Stara"}, headers=auth_headers)
        ).json()

        updated = await async_client.put(
            f"/api/categories/{category['id']}", json={"name": "Nova", "color": "#ff0000"}, headers=auth_headers
        )
        deleted = await async_client.delete(f"/api/categories/{category['id']}", headers=auth_headers)
        listing = await async_client.get("/api/categories", headers=auth_headers)

        assert updated.json()["name"] == "Nova"
        assert updated.json()["color"] == "#ff0000"
        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert listing.json() == []

    @pytest.mark.asyncio
    async def test_other_users_category(self, async_client: AsyncClient, auth_headers: dict, pro_headers: dict):
        category = (
            await async_client.post("/api/categories", json={"name": "Tuđa"}, headers=pro_headers)
        ).json()

        response = await async_client.delete(f"/api/categories/{category['id']}", headers=auth_headers)

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestCompetitors:
    """Tests for /api/competitors."""

    @pytest.mark.asyncio
    async def test_add_derives_icon_and_feed(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/competitors",
            json={"name": "Fitness Pro", "url": "https://youtube.com/@fitnesspro"},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["icon"].endswith("text=YT")
        assert data["niche"] == "fitness"
        assert len(data["feed"]) == 2

    @pytest.mark.asyncio
    async def test_invalid_url(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/competitors", json={"name": "X", "url": "youtube"}, headers=auth_headers
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {"error": "Invalid URL format"}

    @pytest.mark.asyncio
    async def test_remove(self, async_client: AsyncClient, auth_headers: dict):
        competitor = (
            await async_client.post(
                "/api/competitors",
                json={"name": "Rival", "url": "https://instagram.com/rival", "feed": []},
                headers=auth_headers,
            )
        ).json()

        removed = await async_client.delete(f"/api/competitors/{competitor['id']}", headers=auth_headers)
        again = await async_client.delete(f"/api/competitors/{competitor['id']}", headers=auth_headers)

        assert competitor["feed"] == []
        assert removed.status_code == status.HTTP_204_NO_CONTENT
        assert again.status_code == status.HTTP_404_NOT_FOUND


class TestHealth:
    """Tests for the health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, async_client: AsyncClient):
        response = await async_client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_readiness(self, async_client: AsyncClient):
        response = await async_client.get("/api/health/ready")

        assert response.json()["ready"] is True
        assert response.json()["database"] == "ok"

    @pytest.mark.asyncio
    async def test_services_requires_admin(self, async_client: AsyncClient, auth_headers: dict, admin_headers: dict):
        forbidden = await async_client.get("/api/health/services", headers=auth_headers)
        allowed = await async_client.get("/api/health/services", headers=admin_headers)

        assert forbidden.status_code == status.HTTP_403_FORBIDDEN
        assert set(allowed.json()["services"]) == {"anthropic", "stripe", "sanity", "supabase_admin"}

    @pytest.mark.asyncio
    async def test_unknown_route(self, async_client: AsyncClient):
        response = await async_client.get("/api/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"error": "Not Found"}
