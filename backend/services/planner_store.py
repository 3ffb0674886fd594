"""
Per-user planner stores.

Each store is keyed by a user id, loads that user's rows through an
injected repository and keeps an in-memory mirror (``items``) that is
patched only after the repository call succeeds. Mutations never raise:
they return a ``MutationResult`` and record the message in ``error``.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from core.content_helpers import (
    get_youtube_thumbnail,
    is_valid_http_url,
    parse_profile_details,
    placeholder_feed,
)
from core.interfaces.repositories import (
    CategoryRepository,
    CompetitorRepository,
    ProfileRepository,
    RepositoryError,
    TaskRepository,
)
from core.plans import can_create_task, get_remaining_tasks, task_limit_message

from .optimistic import PendingIdReconciler

logger = logging.getLogger(__name__)

MAX_CATEGORIES = 20

# Error codes carried by MutationResult; the API maps them to HTTP statuses
VALIDATION = "validation"
NOT_FOUND = "not_found"
FORBIDDEN = "forbidden"
STORAGE = "storage"


@dataclass
class MutationResult:
    """``{data, error}`` envelope returned by every store operation."""

    data: Any = None
    error: str | None = None
    code: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class TaskCreation:
    """Outcome of creating a task and then attaching its links one by one."""

    task: dict
    link_errors: list[dict] = field(default_factory=list)


class _UserStore:
    def __init__(self, user_id: str, is_admin: bool = False):
        self.user_id = user_id
        self.is_admin = is_admin
        self.items: list[dict] = []
        self.error: str | None = None
        self.loading = False

    def _ok(self, data: Any = None) -> MutationResult:
        self.error = None
        return MutationResult(data=data)

    def _fail(self, message: str, code: str) -> MutationResult:
        self.error = message
        return MutationResult(error=message, code=code)

    def _storage_failure(self, action: str, exc: RepositoryError) -> MutationResult:
        logger.warning("%s failed for user %s: %s", action, self.user_id, exc)
        return self._fail(str(exc) or f"{action} failed", STORAGE)

    def _replace_item(self, saved: dict) -> None:
        self.items = [saved if item["id"] == saved["id"] else item for item in self.items]

    def _drop_item(self, item_id: str) -> None:
        self.items = [item for item in self.items if item["id"] != item_id]


class TaskStore(_UserStore):
    """The user's tasks, with tier gating and inspiration links."""

    def __init__(
        self,
        repository: TaskRepository,
        user_id: str,
        tier: str = "free",
        is_admin: bool = False,
    ):
        super().__init__(user_id, is_admin)
        self.repository = repository
        self.tier = tier
        self.links = PendingIdReconciler()

    async def load(self) -> MutationResult:
        self.loading = True
        try:
            rows = await self.repository.list_tasks(self.user_id)
        except RepositoryError as e:
            return self._storage_failure("Loading tasks", e)
        finally:
            self.loading = False
        for row in rows:
            row["inspiration_links"] = self.links.merge(
                row.get("inspiration_links", []),
                where=lambda item, task_id=row["id"]: item.get("task_id") == task_id,
            )
        self.items = rows
        return self._ok(rows)

    async def remaining_tasks(self) -> int | None:
        count = await self.repository.count_owned_tasks(self.user_id)
        return get_remaining_tasks(self.tier, count)

    async def _validate_category(self, values: dict) -> MutationResult | None:
        category_id = values.get("category_id")
        if category_id and not await self.repository.category_owned_by(category_id, self.user_id):
            return self._fail("Category not found", VALIDATION)
        return None

    async def create_task(self, values: dict) -> MutationResult:
        values = dict(values)
        if not self.is_admin:
            values.pop("is_admin_case_study", None)

        try:
            if not values.get("is_admin_case_study"):
                count = await self.repository.count_owned_tasks(self.user_id)
                if not can_create_task(self.tier, count):
                    return self._fail(task_limit_message(self.tier), VALIDATION)

            failure = await self._validate_category(values)
            if failure:
                return failure

            saved = await self.repository.create_task(self.user_id, values)
        except RepositoryError as e:
            return self._storage_failure("Creating task", e)

        self.items = [saved, *self.items]
        return self._ok(saved)

    async def create_task_with_links(self, values: dict, links: list[str]) -> MutationResult:
        """Create a task, then attach each link in its own round trip.

        A failed link does not roll the task back; it is reported in
        ``link_errors`` and the rest are still attempted.
        """
        created = await self.create_task(values)
        if not created.ok:
            return created

        outcome = TaskCreation(task=created.data)
        for url in links:
            attached = await self.add_inspiration_link(created.data["id"], url)
            if not attached.ok:
                outcome.link_errors.append({"link": url, "error": attached.error})

        outcome.task = self._find(created.data["id"]) or created.data
        self.error = outcome.link_errors[-1]["error"] if outcome.link_errors else None
        return MutationResult(data=outcome)

    def _find(self, task_id: str) -> dict | None:
        return next((item for item in self.items if item["id"] == task_id), None)

    async def _editable_task(self, task_id: str) -> tuple[dict | None, MutationResult | None]:
        task = await self.repository.get_task(task_id)
        if task is None:
            return None, self._fail("Task not found", NOT_FOUND)
        if task["is_admin_case_study"] and not self.is_admin:
            return None, self._fail("Case studies can only be changed by admins", FORBIDDEN)
        if task["user_id"] != self.user_id and not self.is_admin:
            return None, self._fail("Task not found", NOT_FOUND)
        return task, None

    async def update_task(self, task_id: str, updates: dict) -> MutationResult:
        updates = dict(updates)
        if not self.is_admin:
            updates.pop("is_admin_case_study", None)
        try:
            _, failure = await self._editable_task(task_id)
            if failure:
                return failure
            failure = await self._validate_category(updates)
            if failure:
                return failure
            saved = await self.repository.update_task(task_id, updates)
        except RepositoryError as e:
            return self._storage_failure("Updating task", e)
        if saved is None:
            return self._fail("Task not found", NOT_FOUND)

        self._replace_item(saved)
        return self._ok(saved)

    async def delete_task(self, task_id: str) -> MutationResult:
        try:
            _, failure = await self._editable_task(task_id)
            if failure:
                return failure
            deleted = await self.repository.delete_task(task_id)
        except RepositoryError as e:
            return self._storage_failure("Deleting task", e)
        if not deleted:
            return self._fail("Task not found", NOT_FOUND)

        self._drop_item(task_id)
        return self._ok({"id": task_id})

    def _patch_links(self, task_id: str, change) -> None:
        task = self._find(task_id)
        if task is not None:
            task["inspiration_links"] = change(task.get("inspiration_links", []))

    async def add_inspiration_link(self, task_id: str, url: str) -> MutationResult:
        url = (url or "").strip()
        if not is_valid_http_url(url):
            return self._fail("Invalid URL format", VALIDATION)

        try:
            _, failure = await self._editable_task(task_id)
        except RepositoryError as e:
            return self._storage_failure("Adding inspiration link", e)
        if failure:
            return failure

        thumbnail = get_youtube_thumbnail(url)
        values = {"link": url, "display_url": thumbnail["url"] or url, "type": thumbnail["type"]}

        pending = self.links.add_pending({**values, "task_id": task_id})
        self._patch_links(task_id, lambda links: [*links, pending])
        try:
            saved = await self.repository.add_inspiration_link(task_id, values)
        except RepositoryError as e:
            self.links.discard(pending["id"])
            self._patch_links(task_id, lambda links: self.links.replace(links, pending["id"], None))
            return self._storage_failure("Adding inspiration link", e)

        self.links.confirm(pending["id"], saved)
        self._patch_links(task_id, lambda links: self.links.replace(links, pending["id"], saved))
        return self._ok(saved)

    async def remove_inspiration_link(self, link_id: str) -> MutationResult:
        link_id = self.links.resolve(link_id)
        try:
            link = await self.repository.get_inspiration_link(link_id)
            if link is None or (link["user_id"] != self.user_id and not self.is_admin):
                return self._fail("Inspiration link not found", NOT_FOUND)
            await self.repository.delete_inspiration_link(link_id)
        except RepositoryError as e:
            return self._storage_failure("Removing inspiration link", e)

        self._patch_links(
            link["task_id"],
            lambda links: [item for item in links if item["id"] != link_id],
        )
        return self._ok({"id": link_id})


class ProfileStore(_UserStore):
    """The user's profile and social links."""

    def __init__(self, repository: ProfileRepository, user_id: str):
        super().__init__(user_id)
        self.repository = repository
        self.profile: dict | None = None

    async def load(self) -> MutationResult:
        self.loading = True
        try:
            self.profile = await self.repository.get_profile(self.user_id)
        except RepositoryError as e:
            return self._storage_failure("Loading profile", e)
        finally:
            self.loading = False
        if self.profile is None:
            return self._fail("Profile not found", NOT_FOUND)
        return self._ok(self.profile)

    async def update_profile(self, updates: dict) -> MutationResult:
        updates = dict(updates)
        social_links = updates.pop("social_links", None)
        for key in ("monthly_goal_short", "monthly_goal_long"):
            if updates.get(key) is not None and updates[key] < 0:
                return self._fail("Monthly goals cannot be negative", VALIDATION)
        if social_links is not None:
            social_links = [link.strip() for link in social_links if link and link.strip()]
            if not all(is_valid_http_url(link) for link in social_links):
                return self._fail("Invalid URL format", VALIDATION)

        try:
            saved = await self.repository.update_profile(self.user_id, updates)
            if saved is None:
                return self._fail("Profile not found", NOT_FOUND)
            if social_links is not None:
                saved["social_links"] = await self.repository.replace_social_links(
                    self.user_id, social_links
                )
        except RepositoryError as e:
            return self._storage_failure("Updating profile", e)

        self.profile = saved
        return self._ok(saved)


class CompetitorStore(_UserStore):
    """Competitor profiles the user tracks."""

    def __init__(self, repository: CompetitorRepository, user_id: str):
        super().__init__(user_id)
        self.repository = repository

    async def load(self) -> MutationResult:
        self.loading = True
        try:
            self.items = await self.repository.list_competitors(self.user_id)
        except RepositoryError as e:
            return self._storage_failure("Loading competitors", e)
        finally:
            self.loading = False
        return self._ok(self.items)

    async def add_competitor(self, name: str, url: str, feed: list[dict] | None = None) -> MutationResult:
        name = (name or "").strip()
        url = (url or "").strip()
        if not name or not url:
            return self._fail("Name and URL are required", VALIDATION)
        if not is_valid_http_url(url):
            return self._fail("Invalid URL format", VALIDATION)

        details = parse_profile_details(url, name)
        values = {
            "name": name,
            "url": url,
            "icon": details["icon"],
            "niche": details["niche"],
            "feed": feed if feed is not None else placeholder_feed(datetime.now(UTC).date().isoformat()),
        }
        try:
            saved = await self.repository.create_competitor(self.user_id, values)
        except RepositoryError as e:
            return self._storage_failure("Adding competitor", e)

        self.items = [saved, *self.items]
        return self._ok(saved)

    async def update_competitor(self, competitor_id: str, updates: dict) -> MutationResult:
        if "url" in updates and not is_valid_http_url(updates["url"] or ""):
            return self._fail("Invalid URL format", VALIDATION)
        try:
            saved = await self.repository.update_competitor(self.user_id, competitor_id, updates)
        except RepositoryError as e:
            return self._storage_failure("Updating competitor", e)
        if saved is None:
            return self._fail("Competitor not found", NOT_FOUND)

        self._replace_item(saved)
        return self._ok(saved)

    async def remove_competitor(self, competitor_id: str) -> MutationResult:
        try:
            deleted = await self.repository.delete_competitor(self.user_id, competitor_id)
        except RepositoryError as e:
            return self._storage_failure("Removing competitor", e)
        if not deleted:
            return self._fail("Competitor not found", NOT_FOUND)

        self._drop_item(competitor_id)
        return self._ok({"id": competitor_id})


class CategoryStore(_UserStore):
    """Task categories, capped per user."""

    def __init__(self, repository: CategoryRepository, user_id: str):
        super().__init__(user_id)
        self.repository = repository

    async def load(self) -> MutationResult:
        self.loading = True
        try:
            self.items = await self.repository.list_categories(self.user_id)
        except RepositoryError as e:
            return self._storage_failure("Loading categories", e)
        finally:
            self.loading = False
        return self._ok(self.items)

    async def create_category(self, name: str, color: str | None = None) -> MutationResult:
        name = (name or "").strip()
        if not name:
            return self._fail("Category name is required", VALIDATION)
        try:
            existing = await self.repository.list_categories(self.user_id)
            if len(existing) >= MAX_CATEGORIES:
                return self._fail(f"Maksimalan broj kategorija je {MAX_CATEGORIES}", VALIDATION)
            values = {"name": name}
            if color:
                values["color"] = color
            saved = await self.repository.create_category(self.user_id, values)
        except RepositoryError as e:
            return self._storage_failure("Creating category", e)

        self.items = [saved, *existing]
        return self._ok(saved)

    async def update_category(self, category_id: str, updates: dict) -> MutationResult:
        if "name" in updates and not (updates["name"] or "").strip():
            return self._fail("Category name is required", VALIDATION)
        try:
            saved = await self.repository.update_category(self.user_id, category_id, updates)
        except RepositoryError as e:
            return self._storage_failure("Updating category", e)
        if saved is None:
            return self._fail("Category not found", NOT_FOUND)

        self._replace_item(saved)
        return self._ok(saved)

    async def delete_category(self, category_id: str) -> MutationResult:
        try:
            deleted = await self.repository.delete_category(self.user_id, category_id)
        except RepositoryError as e:
            return self._storage_failure("Deleting category", e)
        if not deleted:
            return self._fail("Category not found", NOT_FOUND)

        self._drop_item(category_id)
        return self._ok({"id": category_id})
