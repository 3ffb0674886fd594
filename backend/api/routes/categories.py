"""
Task category routes.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.categories import CategoryCreate, CategoryResponse, CategoryUpdate
from api.utils import raise_for_result
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from infrastructure.database.repositories import SqlCategoryRepository
from services.planner_store import CategoryStore

router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_store(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> CategoryStore:
    return CategoryStore(SqlCategoryRepository(db), current_user.id)


CategoryStoreDep = Annotated[CategoryStore, Depends(get_category_store)]


@router.get("", response_model=list[CategoryResponse])
async def list_categories(store: CategoryStoreDep):
    return raise_for_result(await store.load()).data


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, store: CategoryStoreDep):
    return raise_for_result(await store.create_category(body.name, body.color)).data


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(category_id: str, body: CategoryUpdate, store: CategoryStoreDep):
    updates = body.model_dump(exclude_unset=True, exclude_none=True)
    return raise_for_result(await store.update_category(category_id, updates)).data


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(category_id: str, store: CategoryStoreDep):
    raise_for_result(await store.delete_category(category_id))
