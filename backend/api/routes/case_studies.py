"""
Case study routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.tasks import TaskResponse
from core.content_helpers import take_visible
from core.plans import effective_tier, get_tier_limits
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile, Task
from infrastructure.database.repositories import task_to_row

router = APIRouter(prefix="/case-studies", tags=["case-studies"])


@router.get("", response_model=list[TaskResponse])
async def list_case_studies(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
):
    """Admin-curated case studies, shuffled and capped by tier."""
    result = await db.execute(
        select(Task)
        .where(Task.is_admin_case_study.is_(True))
        .order_by(Task.created_at.desc())
        .execution_options(populate_existing=True)
    )
    tier = effective_tier(current_user.tier, current_user.is_admin)
    visible = take_visible(list(result.scalars().all()), get_tier_limits(tier).max_case_studies)
    return [TaskResponse(**task_to_row(task)) for task in visible]
