"""
Competitor database model.
"""

from typing import Optional
from uuid import uuid4

from sqlalchemy import JSON, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Competitor(Base, TimestampMixin):
    """External creator profile tracked by a user."""

    __tablename__ = "competitors"

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
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)
    icon: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    niche: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    feed: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    """
    Structure:
    [{"id": "1", "title": "Sample Post 1", "views": "10K", "date": "2025-01-15", "type": "reel"}]
    """

    def __repr__(self) -> str:
        return f"<Competitor(id={self.id}, name={self.name})>"
