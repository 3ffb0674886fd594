"""
Content template database models.
"""

from typing import List, Optional
from uuid import uuid4

from sqlalchemy import JSON, Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class Template(Base, TimestampMixin):
    """Admin-authored content skeleton, usually mirrored from the CMS."""

    __tablename__ = "templates"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    created_by: Mapped[Optional[str]] = mapped_column(UUID(as_uuid=False), nullable=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    format: Mapped[str] = mapped_column(String(50), nullable=False)
    views_potential: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    concept: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    structure: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)
    """
    Structure:
    {"hook": "...", "body": "...", "cta": "..."} for short form,
    {"body": "..."} for long form.
    """
    vlads_tip: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    niche: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    is_published: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    visibility: Mapped[List["TemplateVisibility"]] = relationship(
        "TemplateVisibility",
        back_populates="template",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_templates_title_format", "title", "format"),
    )

    def __repr__(self) -> str:
        return f"<Template(id={self.id}, title={self.title[:30]}, format={self.format})>"

    @property
    def visible_tiers(self) -> list[str]:
        return [row.tier for row in self.visibility]


class TemplateVisibility(Base):
    """Restricts a template to the listed tiers."""

    __tablename__ = "template_visibility"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    template_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tier: Mapped[str] = mapped_column(String(20), nullable=False)

    template: Mapped["Template"] = relationship("Template", back_populates="visibility")

    __table_args__ = (
        UniqueConstraint("template_id", "tier", name="uq_template_visibility_template_tier"),
    )
