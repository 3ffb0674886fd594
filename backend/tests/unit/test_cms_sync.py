"""
Unit tests for mirroring CMS documents into the database.
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import Profile, Task, Template
from services.cms_sync import CmsSyncService, template_structure

SHORT_TEMPLATE = {
    "_id": "tpl-1",
    "title": "Tri greške",
    "format": "Kratka Forma",
    "niche": "marketing",
    "concept": "Lista grešaka",
    "structure": {"hook": "Praviš li ove greške?", "body": "Prva...", "cta": "Sačuvaj"},
    "isPublished": True,
}

CASE_STUDY = {
    "_id": "cs-1",
    "title": "Od 0 do 100k",
    "niche": "fitness",
    "format": "Duga Forma",
    "body": "<p>Ceo scenario</p>",
    "analysis": [
        {"_type": "block", "style": "h2", "children": [{"text": "Zašto radi"}]},
        {"_type": "block", "children": [{"text": "Jak hook & jasan CTA"}]},
    ],
    "resultViews": "120K",
    "publishDate": "2025-03-01T10:00:00Z",
}


class TestTemplateStructure:
    def test_short_form_keeps_three_parts(self):
        assert template_structure(SHORT_TEMPLATE) == SHORT_TEMPLATE["structure"]

    def test_long_form_keeps_only_body(self):
        document = {**SHORT_TEMPLATE, "format": "Duga Forma"}
        assert template_structure(document) == {"body": "Prva..."}

    def test_missing_structure(self):
        assert template_structure({"format": "Kratka Forma"}) == {"hook": "", "body": "", "cta": ""}


class TestSyncTemplates:
    @pytest.mark.asyncio
    async def test_upsert_by_title_and_format(
        self, db_session: AsyncSession, admin_user: Profile, sanity_mock: MagicMock
    ):
        sanity_mock.fetch_templates.return_value = [SHORT_TEMPLATE]
        service = CmsSyncService(db_session, sanity_mock)

        first = await service.sync_templates(admin_user.id)
        sanity_mock.fetch_templates.return_value = [{**SHORT_TEMPLATE, "concept": "Nova verzija"}]
        second = await service.sync_templates(admin_user.id)

        assert first.synced == 1
        assert second.message == "Synced 1 templates"
        templates = (await db_session.execute(select(Template))).scalars().all()
        assert len(templates) == 1
        assert templates[0].concept == "Nova verzija"
        assert templates[0].created_by == admin_user.id

    @pytest.mark.asyncio
    async def test_invalid_document_is_reported(
        self, db_session: AsyncSession, admin_user: Profile, sanity_mock: MagicMock
    ):
        sanity_mock.fetch_templates.return_value = [{"_id": "tpl-2", "title": "No format"}, SHORT_TEMPLATE]

        report = await CmsSyncService(db_session, sanity_mock).sync_templates(admin_user.id)

        assert report.synced == 1
        assert len(report.errors) == 1
        assert "No format" in report.errors[0]


class TestSyncCaseStudies:
    @pytest.mark.asyncio
    async def test_case_study_becomes_published_task(
        self, db_session: AsyncSession, admin_user: Profile, sanity_mock: MagicMock
    ):
        sanity_mock.fetch_case_studies.return_value = [CASE_STUDY]

        report = await CmsSyncService(db_session, sanity_mock).sync_case_studies(admin_user.id)

        assert report.as_dict() == {"message": "Synced 1 case studies", "synced": 1, "errors": []}
        task = (await db_session.execute(select(Task))).scalar_one()
        assert task.cms_id == "cs-1"
        assert task.is_admin_case_study is True
        assert task.status == "published"
        assert task.user_id == admin_user.id
        assert task.analysis == "<h2>Zašto radi</h2><p>Jak hook &amp; jasan CTA</p>"
        assert task.result_views == "120K"

    @pytest.mark.asyncio
    async def test_resync_updates_in_place(
        self, db_session: AsyncSession, admin_user: Profile, sanity_mock: MagicMock
    ):
        service = CmsSyncService(db_session, sanity_mock)
        sanity_mock.fetch_case_studies.return_value = [CASE_STUDY]
        await service.sync_case_studies(admin_user.id)
        sanity_mock.fetch_case_studies.return_value = [{**CASE_STUDY, "resultViews": "250K"}]
        await service.sync_case_studies(admin_user.id)

        tasks = (await db_session.execute(select(Task))).scalars().all()
        assert len(tasks) == 1
        assert tasks[0].result_views == "250K"
