"""
Template library routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.templates import TemplateResponse
from core.content_helpers import take_visible
from core.plans import effective_tier, get_tier_limits
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile, Template

router = APIRouter(prefix="/templates", tags=["templates"])


def visible_to(template: Template, tier: str) -> bool:
    """Templates without visibility rows are open to every tier."""
    tiers = template.visible_tiers
    return not tiers or tier in tiers


@router.get("", response_model=list[TemplateResponse])
async def list_templates(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
):
    """Published templates for the caller's tier, in random order and capped per tier."""
    tier = effective_tier(current_user.tier, current_user.is_admin)
    result = await db.execute(
        select(Template)
        .where(Template.is_published.is_(True))
        .order_by(Template.created_at.desc())
        .execution_options(populate_existing=True)
    )
    templates = [
        t for t in result.scalars().all() if current_user.is_admin or visible_to(t, tier)
    ]
    visible = take_visible(templates, get_tier_limits(tier).max_templates)
    return [TemplateResponse.model_validate(t) for t in visible]
