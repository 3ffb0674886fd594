"""Repository interfaces for planner data access.

Rows cross this boundary as plain dicts so stores and tests can swap the
SQL implementation for an in-memory fake. Implementations raise
``RepositoryError`` for storage failures; stores turn those into
``MutationResult`` values.
"""

from abc import ABC, abstractmethod


class RepositoryError(Exception):
    """Raised when the backing store rejects or fails an operation."""


class TaskRepository(ABC):
    """Abstract repository for tasks and their inspiration links."""

    @abstractmethod
    async def list_tasks(self, user_id: str) -> list[dict]:
        """Tasks owned by the user, newest first, with links and category."""
        ...

    @abstractmethod
    async def get_task(self, task_id: str) -> dict | None:
        """Get task by ID."""
        ...

    @abstractmethod
    async def count_owned_tasks(self, user_id: str) -> int:
        """Count the user's tasks, excluding case studies."""
        ...

    @abstractmethod
    async def create_task(self, user_id: str, values: dict) -> dict:
        """Create a new task."""
        ...

    @abstractmethod
    async def update_task(self, task_id: str, values: dict) -> dict | None:
        """Update an existing task."""
        ...

    @abstractmethod
    async def delete_task(self, task_id: str) -> bool:
        """Delete a task."""
        ...

    @abstractmethod
    async def category_owned_by(self, category_id: str, user_id: str) -> bool:
        """Check that a category belongs to the user."""
        ...

    @abstractmethod
    async def add_inspiration_link(self, task_id: str, values: dict) -> dict:
        """Attach an inspiration link to a task."""
        ...

    @abstractmethod
    async def get_inspiration_link(self, link_id: str) -> dict | None:
        """Get a link by ID, including the owning task's ``user_id``."""
        ...

    @abstractmethod
    async def delete_inspiration_link(self, link_id: str) -> bool:
        """Delete an inspiration link."""
        ...


class ProfileRepository(ABC):
    """Abstract repository for profiles."""

    @abstractmethod
    async def get_profile(self, user_id: str) -> dict | None:
        """Get profile by ID, with social links."""
        ...

    @abstractmethod
    async def update_profile(self, user_id: str, values: dict) -> dict | None:
        """Update profile fields."""
        ...

    @abstractmethod
    async def replace_social_links(self, user_id: str, urls: list[str]) -> list[dict]:
        """Replace the profile's social links with ``urls``."""
        ...


class CompetitorRepository(ABC):
    """Abstract repository for tracked competitors."""

    @abstractmethod
    async def list_competitors(self, user_id: str) -> list[dict]:
        """Competitors tracked by the user, newest first."""
        ...

    @abstractmethod
    async def create_competitor(self, user_id: str, values: dict) -> dict:
        """Create a new competitor."""
        ...

    @abstractmethod
    async def update_competitor(self, user_id: str, competitor_id: str, values: dict) -> dict | None:
        """Update a competitor owned by the user."""
        ...

    @abstractmethod
    async def delete_competitor(self, user_id: str, competitor_id: str) -> bool:
        """Delete a competitor owned by the user."""
        ...


class CategoryRepository(ABC):
    """Abstract repository for task categories."""

    @abstractmethod
    async def list_categories(self, user_id: str) -> list[dict]:
        """Categories owned by the user, newest first."""
        ...

    @abstractmethod
    async def create_category(self, user_id: str, values: dict) -> dict:
        """Create a new category."""
        ...

    @abstractmethod
    async def update_category(self, user_id: str, category_id: str, values: dict) -> dict | None:
        """Update a category owned by the user."""
        ...

    @abstractmethod
    async def delete_category(self, user_id: str, category_id: str) -> bool:
        """Delete a category owned by the user."""
        ...
