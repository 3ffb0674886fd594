"""
Profile routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.profile import ProfileResponse, ProfileUpdate
from api.utils import raise_for_result
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from infrastructure.database.repositories import SqlProfileRepository
from services.planner_store import ProfileStore

router = APIRouter(prefix="/profile", tags=["profile"])


def get_profile_store(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> ProfileStore:
    return ProfileStore(SqlProfileRepository(db), current_user.id)


ProfileStoreDep = Annotated[ProfileStore, Depends(get_profile_store)]


@router.get("", response_model=ProfileResponse)
async def get_profile(store: ProfileStoreDep):
    return raise_for_result(await store.load()).data


@router.put("", response_model=ProfileResponse)
async def update_profile(body: ProfileUpdate, store: ProfileStoreDep):
    """Update business details and goals. ``social_links`` replaces the stored set."""
    return raise_for_result(await store.update_profile(body.model_dump(exclude_unset=True, exclude_none=True))).data
