"""
Planner task database models.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class ContentFormat(str, Enum):
    """Content format of a task."""

    SHORT = "Kratka Forma"
    LONG = "Duga Forma"


class TaskStatus(str, Enum):
    """Kanban column, in order of progression."""

    IDEA = "idea"
    READY = "ready"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class LinkType(str, Enum):
    """Inspiration link type."""

    YOUTUBE = "youtube"
    LINK = "link"


class TaskCategory(Base, TimestampMixin):
    """Per-user task label."""

    __tablename__ = "task_categories"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    color: Mapped[str] = mapped_column(String(20), default="#3b82f6", nullable=False)

    def __repr__(self) -> str:
        return f"<TaskCategory(id={self.id}, name={self.name})>"


class Task(Base, TimestampMixin):
    """A unit of planned content, or an admin-curated case study."""

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    niche: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    format: Mapped[str] = mapped_column(
        String(50),
        default=ContentFormat.SHORT.value,
        nullable=False,
    )

    # Script parts, stored as HTML exactly as submitted
    hook: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    body: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cta: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=TaskStatus.IDEA.value,
        nullable=False,
    )
    publish_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    original_template: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    cover_image_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)

    # Results (case studies)
    result_views: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    result_engagement: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    result_conversions: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    analysis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_by: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), nullable=True)
    is_admin_case_study: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    cms_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, unique=True)

    category_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("task_categories.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    inspiration_links: Mapped[List["InspirationLink"]] = relationship(
        "InspirationLink",
        back_populates="task",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="InspirationLink.created_at",
    )
    category: Mapped[Optional["TaskCategory"]] = relationship(
        "TaskCategory",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_tasks_user_created", "user_id", "created_at"),
        Index("ix_tasks_case_study", "is_admin_case_study"),
    )

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title[:30]}, status={self.status})>"


class InspirationLink(Base, TimestampMixin):
    """Reference URL attached to a task."""

    __tablename__ = "inspiration_links"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    task_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    link: Mapped[str] = mapped_column(String(1000), nullable=False)
    display_url: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    type: Mapped[str] = mapped_column(
        String(20),
        default=LinkType.LINK.value,
        nullable=False,
    )

    task: Mapped["Task"] = relationship("Task", back_populates="inspiration_links")
