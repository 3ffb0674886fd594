"""
Mirror templates and case studies from Sanity into the database.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.cms import SanityAdapter, portable_text_to_html
from core.dates import ensure_utc, utcnow
from infrastructure.database.models import ContentFormat, Task, TaskStatus, Template

logger = logging.getLogger(__name__)


class InvalidDocumentError(ValueError):
    """A CMS document is missing a required field."""


@dataclass
class SyncReport:
    """Outcome of one sync run."""

    kind: str
    synced: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Synced {self.synced} {self.kind}"

    def as_dict(self) -> dict:
        return {"message": self.message, "synced": self.synced, "errors": self.errors}


def template_structure(document: Dict[str, Any]) -> dict:
    """Long-form templates only carry a body."""
    structure = document.get("structure") or {}
    if document.get("format") == ContentFormat.LONG.value:
        return {"body": structure.get("body") or ""}
    return {
        "hook": structure.get("hook") or "",
        "body": structure.get("body") or "",
        "cta": structure.get("cta") or "",
    }


def _parse_publish_date(value: Optional[str]) -> datetime:
    if not value:
        return utcnow()
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return utcnow()
    return ensure_utc(parsed)


def _require(document: Dict[str, Any], *keys: str) -> None:
    missing = [key for key in keys if not document.get(key)]
    if missing:
        raise InvalidDocumentError(f"missing {', '.join(missing)}")


class CmsSyncService:
    """Upserts CMS documents. Each document commits on its own."""

    def __init__(self, db: AsyncSession, sanity: SanityAdapter):
        self.db = db
        self.sanity = sanity

    async def _run(self, report: SyncReport, label: str, document: Dict[str, Any], upsert) -> None:
        title = document.get("title") or document.get("_id") or "untitled"
        try:
            await upsert(document)
            await self.db.commit()
            report.synced += 1
        except InvalidDocumentError as e:
            report.errors.append(f'{label} "{title}": {e}')
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.warning("Failed to sync %s %s: %s", label, title, e)
            report.errors.append(f'{label} "{title}": database error')

    async def sync_templates(self, admin_id: str) -> SyncReport:
        """
        Upsert every template document, matched on (title, format).

        Raises:
            SanityError: The CMS could not be queried
        """
        documents = await self.sanity.fetch_templates()
        report = SyncReport(kind="templates")

        async def upsert(document: Dict[str, Any]) -> None:
            _require(document, "title", "format")
            values = {
                "title": document["title"],
                "format": document["format"],
                "niche": document.get("niche"),
                "concept": document.get("concept"),
                "structure": template_structure(document),
                "is_published": bool(document.get("isPublished")),
            }
            result = await self.db.execute(
                select(Template)
                .where(Template.title == values["title"], Template.format == values["format"])
                .limit(1)
            )
            template = result.scalar_one_or_none()
            if template is None:
                self.db.add(Template(created_by=admin_id, **values))
            else:
                for key, value in values.items():
                    setattr(template, key, value)

        for document in documents:
            await self._run(report, "Template", document, upsert)

        logger.info("Template sync finished: %d synced, %d errors", report.synced, len(report.errors))
        return report

    async def sync_case_studies(self, admin_id: str) -> SyncReport:
        """
        Upsert every case-study document, matched on the CMS document id.

        Raises:
            SanityError: The CMS could not be queried
        """
        documents = await self.sanity.fetch_case_studies()
        report = SyncReport(kind="case studies")

        async def upsert(document: Dict[str, Any]) -> None:
            _require(document, "_id", "title")
            analysis = portable_text_to_html(document.get("analysis") or [])
            values = {
                "title": document["title"],
                "niche": document.get("niche"),
                "format": document.get("format") or ContentFormat.SHORT.value,
                "hook": document.get("hook") or None,
                "body": document.get("body") or None,
                "cta": document.get("cta") or None,
                "analysis": analysis or None,
                "cover_image_url": document.get("coverImageUrl") or None,
                "result_views": document.get("resultViews") or None,
                "result_engagement": document.get("resultEngagement") or None,
                "result_conversions": document.get("resultConversions") or None,
                "original_template": document.get("originalTemplate") or None,
                "status": TaskStatus.PUBLISHED.value,
                "publish_date": _parse_publish_date(document.get("publishDate")),
                "is_admin_case_study": True,
            }
            result = await self.db.execute(select(Task).where(Task.cms_id == document["_id"]))
            task = result.scalar_one_or_none()
            if task is None:
                self.db.add(
                    Task(user_id=admin_id, created_by=admin_id, cms_id=document["_id"], **values)
                )
            else:
                for key, value in values.items():
                    setattr(task, key, value)

        for document in documents:
            await self._run(report, "Case study", document, upsert)

        logger.info("Case study sync finished: %d synced, %d errors", report.synced, len(report.errors))
        return report
