"""
Planner task schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.database.models import ContentFormat, LinkType, TaskStatus


class InspirationLinkCreate(BaseModel):
    url: str = Field(..., min_length=1, max_length=1000)


class InspirationLinkResponse(BaseModel):
    id: str
    task_id: str
    link: str
    display_url: str | None = None
    type: LinkType
    created_at: datetime | None = None


class CategoryBrief(BaseModel):
    id: str
    name: str
    color: str


class _TaskFields(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    niche: str | None = Field(None, max_length=100)
    hook: str | None = None
    body: str | None = None
    cta: str | None = None
    publish_date: datetime | None = None
    original_template: str | None = Field(None, max_length=500)
    cover_image_url: str | None = Field(None, max_length=1000)
    result_views: str | None = Field(None, max_length=100)
    result_engagement: str | None = Field(None, max_length=100)
    result_conversions: str | None = Field(None, max_length=100)
    analysis: str | None = None
    category_id: str | None = None
    is_admin_case_study: bool | None = None


class TaskCreate(_TaskFields):
    """Request to create a task. Script parts are HTML and stored verbatim."""

    title: str = Field(..., min_length=1, max_length=500)
    format: ContentFormat = ContentFormat.SHORT
    status: TaskStatus = TaskStatus.IDEA
    inspiration_links: list[str] = Field(default_factory=list, max_length=20)


class TaskUpdate(_TaskFields):
    """Partial update; only fields present in the body are written."""

    title: str | None = Field(None, min_length=1, max_length=500)
    format: ContentFormat | None = None
    status: TaskStatus | None = None


class TaskResponse(BaseModel):
    id: str
    user_id: str
    title: str
    niche: str | None = None
    format: str
    hook: str | None = None
    body: str | None = None
    cta: str | None = None
    status: str
    publish_date: datetime | None = None
    original_template: str | None = None
    cover_image_url: str | None = None
    result_views: str | None = None
    result_engagement: str | None = None
    result_conversions: str | None = None
    analysis: str | None = None
    created_by: str | None = None
    is_admin_case_study: bool = False
    category_id: str | None = None
    category: CategoryBrief | None = None
    inspiration_links: list[InspirationLinkResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCreateResponse(BaseModel):
    task: TaskResponse
    link_errors: list[dict] = Field(default_factory=list)


class TaskListResponse(BaseModel):
    items: list[TaskResponse]
    remaining_tasks: int | None = Field(None, description="Tasks left on the tier; null when unlimited")


class GoalProgressResponse(BaseModel):
    completed_short: int
    completed_long: int
    required_short: int
    required_long: int
    goal_short: int
    goal_long: int
    notification: str | None = None
    notification_kind: str | None = None
