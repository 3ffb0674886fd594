"""
Competitor tracking routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.competitors import CompetitorCreate, CompetitorResponse, CompetitorUpdate
from api.utils import raise_for_result
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from infrastructure.database.repositories import SqlCompetitorRepository
from services.planner_store import CompetitorStore

router = APIRouter(prefix="/competitors", tags=["competitors"])


def get_competitor_store(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> CompetitorStore:
    return CompetitorStore(SqlCompetitorRepository(db), current_user.id)


CompetitorStoreDep = Annotated[CompetitorStore, Depends(get_competitor_store)]


@router.get("", response_model=list[CompetitorResponse])
async def list_competitors(store: CompetitorStoreDep):
    return raise_for_result(await store.load()).data


@router.post("", response_model=CompetitorResponse, status_code=status.HTTP_201_CREATED)
async def add_competitor(body: CompetitorCreate, store: CompetitorStoreDep):
    """Icon and niche are derived from the URL and name; a sample feed is stored when none is sent."""
    feed = [item.model_dump() for item in body.feed] if body.feed is not None else None
    return raise_for_result(await store.add_competitor(body.name, body.url, feed)).data


@router.put("/{competitor_id}", response_model=CompetitorResponse)
async def update_competitor(competitor_id: str, body: CompetitorUpdate, store: CompetitorStoreDep):
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    return raise_for_result(await store.update_competitor(competitor_id, updates)).data


@router.delete("/{competitor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_competitor(competitor_id: str, store: CompetitorStoreDep):
    raise_for_result(await store.remove_competitor(competitor_id))
