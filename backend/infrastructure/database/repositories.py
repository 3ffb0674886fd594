"""SQLAlchemy implementations of the planner repository interfaces."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.interfaces.repositories import (
    CategoryRepository,
    CompetitorRepository,
    ProfileRepository,
    RepositoryError,
    TaskRepository,
)

from .models import Competitor, InspirationLink, Profile, SocialLink, Task, TaskCategory

logger = logging.getLogger(__name__)

_TASK_FIELDS = (
    "id",
    "user_id",
    "title",
    "niche",
    "format",
    "hook",
    "body",
    "cta",
    "status",
    "publish_date",
    "original_template",
    "cover_image_url",
    "result_views",
    "result_engagement",
    "result_conversions",
    "analysis",
    "created_by",
    "is_admin_case_study",
    "cms_id",
    "category_id",
    "created_at",
    "updated_at",
)

_PROFILE_FIELDS = (
    "id",
    "email",
    "business_name",
    "business_category",
    "target_audience",
    "persona",
    "monthly_goal_short",
    "monthly_goal_long",
    "role",
    "tier",
    "has_unlimited_free",
    "created_at",
    "updated_at",
)

_COMPETITOR_FIELDS = ("id", "user_id", "name", "url", "icon", "niche", "feed", "created_at", "updated_at")
_CATEGORY_FIELDS = ("id", "user_id", "name", "color", "created_at", "updated_at")
_LINK_FIELDS = ("id", "task_id", "link", "display_url", "type", "created_at")


def _pick(obj, fields) -> dict:
    return {field: getattr(obj, field) for field in fields}


def category_to_row(category: TaskCategory) -> dict:
    return _pick(category, _CATEGORY_FIELDS)


def link_to_row(link: InspirationLink) -> dict:
    return _pick(link, _LINK_FIELDS)


def task_to_row(task: Task) -> dict:
    row = _pick(task, _TASK_FIELDS)
    row["inspiration_links"] = [link_to_row(link) for link in task.inspiration_links]
    row["category"] = category_to_row(task.category) if task.category else None
    return row


def profile_to_row(profile: Profile) -> dict:
    row = _pick(profile, _PROFILE_FIELDS)
    row["social_links"] = [{"id": link.id, "url": link.url} for link in profile.social_links]
    return row


def competitor_to_row(competitor: Competitor) -> dict:
    return _pick(competitor, _COMPETITOR_FIELDS)


class _SqlRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Database commit failed: %s", e)
            raise RepositoryError("Database operation failed") from e


class SqlTaskRepository(_SqlRepository, TaskRepository):
    """Tasks and inspiration links backed by the relational store."""

    async def _load(self, task_id: str) -> Task | None:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_tasks(self, user_id: str) -> list[dict]:
        result = await self.db.execute(
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at.desc())
        )
        return [task_to_row(task) for task in result.scalars().all()]

    async def get_task(self, task_id: str) -> dict | None:
        task = await self._load(task_id)
        return task_to_row(task) if task else None

    async def count_owned_tasks(self, user_id: str) -> int:
        result = await self.db.execute(
            select(func.count(Task.id)).where(
                Task.user_id == user_id,
                Task.is_admin_case_study.is_(False),
            )
        )
        return result.scalar() or 0

    async def create_task(self, user_id: str, values: dict) -> dict:
        task = Task(user_id=user_id, created_by=values.pop("created_by", user_id), **values)
        self.db.add(task)
        await self._commit()
        return task_to_row(await self._load(task.id))

    async def update_task(self, task_id: str, values: dict) -> dict | None:
        task = await self._load(task_id)
        if task is None:
            return None
        for field, value in values.items():
            setattr(task, field, value)
        await self._commit()
        return task_to_row(await self._load(task_id))

    async def delete_task(self, task_id: str) -> bool:
        task = await self._load(task_id)
        if task is None:
            return False
        await self.db.delete(task)
        await self._commit()
        return True

    async def category_owned_by(self, category_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(TaskCategory.id).where(
                TaskCategory.id == category_id,
                TaskCategory.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def add_inspiration_link(self, task_id: str, values: dict) -> dict:
        link = InspirationLink(task_id=task_id, **values)
        self.db.add(link)
        await self._commit()
        return link_to_row(link)

    async def get_inspiration_link(self, link_id: str) -> dict | None:
        result = await self.db.execute(
            select(InspirationLink, Task.user_id)
            .join(Task, Task.id == InspirationLink.task_id)
            .where(InspirationLink.id == link_id)
        )
        found = result.first()
        if found is None:
            return None
        link, owner_id = found
        row = link_to_row(link)
        row["user_id"] = owner_id
        return row

    async def delete_inspiration_link(self, link_id: str) -> bool:
        result = await self.db.execute(delete(InspirationLink).where(InspirationLink.id == link_id))
        await self._commit()
        return result.rowcount > 0


class SqlProfileRepository(_SqlRepository, ProfileRepository):
    """Profiles and social links backed by the relational store."""

    async def _load(self, user_id: str) -> Profile | None:
        result = await self.db.execute(
            select(Profile).where(Profile.id == user_id).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_profile(self, user_id: str) -> dict | None:
        profile = await self._load(user_id)
        return profile_to_row(profile) if profile else None

    async def update_profile(self, user_id: str, values: dict) -> dict | None:
        profile = await self._load(user_id)
        if profile is None:
            return None
        for field, value in values.items():
            setattr(profile, field, value)
        await self._commit()
        return profile_to_row(await self._load(user_id))

    async def replace_social_links(self, user_id: str, urls: list[str]) -> list[dict]:
        await self.db.execute(delete(SocialLink).where(SocialLink.profile_id == user_id))
        for url in urls:
            self.db.add(SocialLink(profile_id=user_id, url=url))
        await self._commit()
        profile = await self._load(user_id)
        return profile_to_row(profile)["social_links"] if profile else []


class SqlCompetitorRepository(_SqlRepository, CompetitorRepository):
    """Competitors backed by the relational store."""

    async def _owned(self, user_id: str, competitor_id: str) -> Competitor | None:
        result = await self.db.execute(
            select(Competitor).where(
                Competitor.id == competitor_id,
                Competitor.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_competitors(self, user_id: str) -> list[dict]:
        result = await self.db.execute(
            select(Competitor)
            .where(Competitor.user_id == user_id)
            .order_by(Competitor.created_at.desc())
        )
        return [competitor_to_row(c) for c in result.scalars().all()]

    async def create_competitor(self, user_id: str, values: dict) -> dict:
        competitor = Competitor(user_id=user_id, **values)
        self.db.add(competitor)
        await self._commit()
        return competitor_to_row(competitor)

    async def update_competitor(self, user_id: str, competitor_id: str, values: dict) -> dict | None:
        competitor = await self._owned(user_id, competitor_id)
        if competitor is None:
            return None
        for field, value in values.items():
            setattr(competitor, field, value)
        await self._commit()
        return competitor_to_row(competitor)

    async def delete_competitor(self, user_id: str, competitor_id: str) -> bool:
        competitor = await self._owned(user_id, competitor_id)
        if competitor is None:
            return False
        await self.db.delete(competitor)
        await self._commit()
        return True


class SqlCategoryRepository(_SqlRepository, CategoryRepository):
    """Task categories backed by the relational store."""

    async def _owned(self, user_id: str, category_id: str) -> TaskCategory | None:
        result = await self.db.execute(
            select(TaskCategory).where(
                TaskCategory.id == category_id,
                TaskCategory.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_categories(self, user_id: str) -> list[dict]:
        result = await self.db.execute(
            select(TaskCategory)
            .where(TaskCategory.user_id == user_id)
            .order_by(TaskCategory.created_at.desc())
        )
        return [category_to_row(c) for c in result.scalars().all()]

    async def create_category(self, user_id: str, values: dict) -> dict:
        category = TaskCategory(user_id=user_id, **values)
        self.db.add(category)
        await self._commit()
        return category_to_row(category)

    async def update_category(self, user_id: str, category_id: str, values: dict) -> dict | None:
        category = await self._owned(user_id, category_id)
        if category is None:
            return None
        for field, value in values.items():
            setattr(category, field, value)
        await self._commit()
        return category_to_row(category)

    async def delete_category(self, user_id: str, category_id: str) -> bool:
        category = await self._owned(user_id, category_id)
        if category is None:
            return False
        await self.db.delete(category)
        await self._commit()
        return True
