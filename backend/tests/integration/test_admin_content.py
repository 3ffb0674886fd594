"""
Integration tests for templates, case studies and the CMS sync routes.
"""

import pytest
from fastapi import status
from httpx import AsyncClient

from adapters.cms import SanityError

SHORT_STRUCTURE = {"hook": "Da li znaš...", "body": "Tri koraka", "cta": "Zaprati"}


async def create_template(client: AsyncClient, headers: dict, title: str, **fields) -> dict:
    body = {"title": title, "format": "Kratka Forma", "structure": SHORT_STRUCTURE, **fields}
    response = await client.post("/api/admin/templates", json=body, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


async def create_case_study(client: AsyncClient, headers: dict, title: str) -> dict:
    response = await client.post(
        "/api/admin/case-studies",
        json={"title": title, "niche": "fitness", "result_views": "100K"},
        headers=headers,
    )
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


class TestTemplateAdmin:
    """Tests for /api/admin/templates."""

    @pytest.mark.asyncio
    async def test_create_with_visibility(self, async_client: AsyncClient, admin_headers: dict):
        template = await create_template(async_client, admin_headers, "Samo pro", visible_tiers=["pro"])

        assert template["visible_tiers"] == ["pro"]
        assert template["structure"]["hook"] == "Da li znaš..."

    @pytest.mark.asyncio
    async def test_update_replaces_visibility(self, async_client: AsyncClient, admin_headers: dict):
        template = await create_template(async_client, admin_headers, "Promena", visible_tiers=["pro"])

        response = await async_client.put(
            f"/api/admin/templates/{template['id']}",
            json={"visible_tiers": ["free", "pro"], "concept": "Nov koncept"},
            headers=admin_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert sorted(response.json()["visible_tiers"]) == ["free", "pro"]
        assert response.json()["concept"] == "Nov koncept"

    @pytest.mark.asyncio
    async def test_delete(self, async_client: AsyncClient, admin_headers: dict):
        template = await create_template(async_client, admin_headers, "Za brisanje")

        deleted = await async_client.delete(f"/api/admin/templates/{template['id']}", headers=admin_headers)
        missing = await async_client.delete(f"/api/admin/templates/{template['id']}", headers=admin_headers)

        assert deleted.status_code == status.HTTP_204_NO_CONTENT
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.post(
            "/api/admin/templates",
            json={"title": "X", "format": "Kratka Forma", "structure": SHORT_STRUCTURE},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


class TestTemplateLibrary:
    """Tests for GET /api/templates."""

    @pytest.mark.asyncio
    async def test_free_tier_sees_two_open_templates(
        self, async_client: AsyncClient, admin_headers: dict, auth_headers: dict
    ):
        for title in ("A", "B", "C"):
            await create_template(async_client, admin_headers, title)
        await create_template(async_client, admin_headers, "Pro", visible_tiers=["pro"])
        await create_template(async_client, admin_headers, "Skica", is_published=False)

        response = await async_client.get("/api/templates", headers=auth_headers)

        titles = [t["title"] for t in response.json()]
        assert len(titles) == 2
        assert set(titles) <= {"A", "B", "C"}

    @pytest.mark.asyncio
    async def test_pro_tier_sees_everything_published(
        self, async_client: AsyncClient, admin_headers: dict, pro_headers: dict
    ):
        for title in ("A", "B", "C"):
            await create_template(async_client, admin_headers, title)
        await create_template(async_client, admin_headers, "Pro", visible_tiers=["pro"])
        await create_template(async_client, admin_headers, "Free", visible_tiers=["free"])

        response = await async_client.get("/api/templates", headers=pro_headers)

        assert sorted(t["title"] for t in response.json()) == ["A", "B", "C", "Pro"]

    @pytest.mark.asyncio
    async def test_admin_bypasses_visibility(self, async_client: AsyncClient, admin_headers: dict):
        await create_template(async_client, admin_headers, "Free", visible_tiers=["free"])
        await create_template(async_client, admin_headers, "Pro", visible_tiers=["pro"])

        response = await async_client.get("/api/templates", headers=admin_headers)

        assert len(response.json()) == 2


class TestCaseStudies:
    """Tests for case-study creation and listing."""

    @pytest.mark.asyncio
    async def test_created_as_published_task(self, async_client: AsyncClient, admin_headers: dict):
        case_study = await create_case_study(async_client, admin_headers, "Od 0 do 100k")

        assert case_study["is_admin_case_study"] is True
        assert case_study["status"] == "published"
        assert case_study["publish_date"] is not None

    @pytest.mark.asyncio
    async def test_free_tier_sees_two(
        self, async_client: AsyncClient, admin_headers: dict, auth_headers: dict, pro_headers: dict
    ):
        for title in ("Prva", "Druga", "Treća"):
            await create_case_study(async_client, admin_headers, title)

        free = await async_client.get("/api/case-studies", headers=auth_headers)
        pro = await async_client.get("/api/case-studies", headers=pro_headers)

        assert len(free.json()) == 2
        assert len(pro.json()) == 3

    @pytest.mark.asyncio
    async def test_users_cannot_edit_case_studies(
        self, async_client: AsyncClient, admin_headers: dict, auth_headers: dict
    ):
        case_study = await create_case_study(async_client, admin_headers, "Zaključana")

        readable = await async_client.get(f"/api/tasks/{case_study['id']}", headers=auth_headers)
        edit = await async_client.put(
            f"/api/tasks/{case_study['id']}", json={"title": "Moja"}, headers=auth_headers
        )

        assert readable.status_code == status.HTTP_200_OK
        assert edit.status_code == status.HTTP_403_FORBIDDEN
        assert edit.json() == {"error": "Case studies can only be changed by admins"}

    @pytest.mark.asyncio
    async def test_case_studies_do_not_use_the_task_quota(
        self, async_client: AsyncClient, admin_headers: dict, auth_headers: dict
    ):
        await create_case_study(async_client, admin_headers, "Primer")

        response = await async_client.get("/api/tasks", headers=auth_headers)

        assert response.json() == {"items": [], "remaining_tasks": 5}


class TestCmsSync:
    """Tests for /api/sanity/sync-*."""

    @pytest.mark.asyncio
    async def test_sync_templates(self, async_client: AsyncClient, admin_headers: dict, sanity_mock):
        sanity_mock.fetch_templates.return_value = [
            {"_id": "tpl-1", "title": "Tri greške", "format": "Kratka Forma", "isPublished": True},
            {"_id": "tpl-2", "format": "Kratka Forma"},
        ]

        response = await async_client.post("/api/sanity/sync-templates", headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["synced"] == 1
        assert data["message"] == "Synced 1 templates"
        assert len(data["errors"]) == 1

    @pytest.mark.asyncio
    async def test_sync_case_studies(self, async_client: AsyncClient, admin_headers: dict, auth_headers: dict, sanity_mock):
        sanity_mock.fetch_case_studies.return_value = [
            {"_id": "cs-1", "title": "Iz CMS-a", "resultViews": "50K"},
        ]

        response = await async_client.post("/api/sanity/sync-case-studies", headers=admin_headers)
        listing = await async_client.get("/api/case-studies", headers=auth_headers)

        assert response.json()["synced"] == 1
        assert [cs["title"] for cs in listing.json()] == ["Iz CMS-a"]

    @pytest.mark.asyncio
    async def test_cms_unreachable(self, async_client: AsyncClient, admin_headers: dict, sanity_mock):
        sanity_mock.fetch_templates.side_effect = SanityError("Failed to reach Sanity")

        response = await async_client.post("/api/sanity/sync-templates", headers=admin_headers)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "Failed to sync templates"}

    @pytest.mark.asyncio
    async def test_non_admin_forbidden(self, async_client: AsyncClient, auth_headers: dict, sanity_mock):
        response = await async_client.post("/api/sanity/sync-templates", headers=auth_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        sanity_mock.fetch_templates.assert_not_called()
