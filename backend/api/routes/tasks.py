"""
Planner task routes.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import get_current_user
from api.schemas.tasks import (
    GoalProgressResponse,
    InspirationLinkCreate,
    InspirationLinkResponse,
    TaskCreate,
    TaskCreateResponse,
    TaskListResponse,
    TaskResponse,
    TaskUpdate,
)
from api.utils import raise_for_result
from core.dates import utcnow
from core.goals import calculate_goal_progress
from core.plans import effective_tier
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from infrastructure.database.repositories import SqlTaskRepository
from services.planner_store import TaskStore

router = APIRouter(tags=["tasks"])

# Columns that cannot be cleared through a partial update
REQUIRED_TASK_FIELDS = frozenset({"title", "format", "status", "is_admin_case_study"})


def get_task_store(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
) -> TaskStore:
    return TaskStore(
        SqlTaskRepository(db),
        current_user.id,
        tier=effective_tier(current_user.tier, current_user.is_admin),
        is_admin=current_user.is_admin,
    )


TaskStoreDep = Annotated[TaskStore, Depends(get_task_store)]


@router.get("/tasks", response_model=TaskListResponse)
async def list_tasks(store: TaskStoreDep):
    """The caller's tasks, newest first, with links and category."""
    result = raise_for_result(await store.load())
    return TaskListResponse(items=result.data, remaining_tasks=await store.remaining_tasks())


@router.post("/tasks", response_model=TaskCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, store: TaskStoreDep):
    """
    Create a task, then attach its inspiration links one at a time.

    Link failures are listed in ``link_errors``; the task is kept.
    """
    values = body.model_dump(exclude={"inspiration_links"}, exclude_none=True)
    result = raise_for_result(await store.create_task_with_links(values, body.inspiration_links))
    creation = result.data
    return TaskCreateResponse(task=TaskResponse(**creation.task), link_errors=creation.link_errors)


@router.get("/tasks/progress", response_model=GoalProgressResponse)
async def goal_progress(
    current_user: Annotated[Profile, Depends(get_current_user)],
    store: TaskStoreDep,
):
    """Published pieces this month against the pro-rated monthly goals."""
    tasks = raise_for_result(await store.load()).data
    progress = calculate_goal_progress(
        tasks,
        current_user.monthly_goal_short,
        current_user.monthly_goal_long,
        utcnow().date(),
    )
    return GoalProgressResponse(
        goal_short=current_user.monthly_goal_short,
        goal_long=current_user.monthly_goal_long,
        **asdict(progress),
    )


@router.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
):
    task = await SqlTaskRepository(db).get_task(task_id)
    if task is None or not (
        task["user_id"] == current_user.id or task["is_admin_case_study"] or current_user.is_admin
    ):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return TaskResponse(**task)


@router.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(task_id: str, body: TaskUpdate, store: TaskStoreDep):
    updates = {
        field: value
        for field, value in body.model_dump(exclude_unset=True).items()
        if value is not None or field not in REQUIRED_TASK_FIELDS
    }
    result = raise_for_result(await store.update_task(task_id, updates))
    return TaskResponse(**result.data)


@router.delete("/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(task_id: str, store: TaskStoreDep):
    raise_for_result(await store.delete_task(task_id))


@router.post(
    "/tasks/{task_id}/inspiration-links",
    response_model=InspirationLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_inspiration_link(task_id: str, body: InspirationLinkCreate, store: TaskStoreDep):
    result = raise_for_result(await store.add_inspiration_link(task_id, body.url))
    return InspirationLinkResponse(**result.data)


@router.delete("/inspiration-links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_inspiration_link(link_id: str, store: TaskStoreDep):
    raise_for_result(await store.remove_inspiration_link(link_id))
