"""
Admin content management routes: templates and case studies.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.schemas.tasks import TaskResponse
from api.schemas.templates import (
    CaseStudyCreate,
    TemplateCreate,
    TemplateResponse,
    TemplateUpdate,
)
from core.dates import utcnow
from infrastructure.database.connection import get_db
from infrastructure.database.models import (
    Profile,
    TaskStatus,
    Template,
    TemplateVisibility,
)
from infrastructure.database.repositories import SqlTaskRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin - Content"])


async def _get_template(db: AsyncSession, template_id: str) -> Template:
    result = await db.execute(
        select(Template)
        .where(Template.id == template_id)
        .execution_options(populate_existing=True)
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Template not found")
    return template


def _set_visibility(template: Template, tiers: list[str]) -> None:
    """Keep rows for tiers that stay so the (template, tier) pair is never inserted twice."""
    wanted = list(dict.fromkeys(tiers))
    kept = [row for row in template.visibility if row.tier in wanted]
    present = {row.tier for row in kept}
    template.visibility = kept + [TemplateVisibility(tier=tier) for tier in wanted if tier not in present]


@router.post("/templates", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    body: TemplateCreate,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
):
    values = body.model_dump(exclude={"visible_tiers", "structure"})
    template = Template(
        created_by=admin_user.id,
        structure=body.structure.model_dump(exclude_none=True),
        **values,
    )
    _set_visibility(template, body.visible_tiers)
    db.add(template)
    await db.commit()
    logger.info("Admin %s created template %s", admin_user.id, template.id)
    return TemplateResponse.model_validate(await _get_template(db, template.id))


@router.put("/templates/{template_id}", response_model=TemplateResponse)
async def update_template(
    template_id: str,
    body: TemplateUpdate,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
):
    template = await _get_template(db, template_id)
    updates = body.model_dump(exclude_unset=True, exclude={"visible_tiers", "structure"})
    for field, value in updates.items():
        setattr(template, field, value)
    if body.structure is not None:
        template.structure = body.structure.model_dump(exclude_none=True)
    if body.visible_tiers is not None:
        _set_visibility(template, body.visible_tiers)
    await db.commit()
    return TemplateResponse.model_validate(await _get_template(db, template_id))


@router.delete("/templates/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_template(
    template_id: str,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
):
    template = await _get_template(db, template_id)
    await db.delete(template)
    await db.commit()
    logger.info("Admin %s deleted template %s", admin_user.id, template_id)


@router.post("/case-studies", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_case_study(
    body: CaseStudyCreate,
    admin_user: Annotated[Profile, Depends(get_current_admin_user)],
    db: AsyncSession = Depends(get_db),
):
    """Case studies are published tasks owned by the creating admin."""
    values = body.model_dump()
    values["publish_date"] = values["publish_date"] or utcnow()
    values["status"] = TaskStatus.PUBLISHED.value
    values["is_admin_case_study"] = True
    row = await SqlTaskRepository(db).create_task(admin_user.id, values)
    return TaskResponse(**row)
