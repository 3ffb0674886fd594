"""
Profile database model.

One row per identity-provider user. The primary key is the provider's
user id, so there is no separate users table.
"""

from enum import Enum
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin


class UserRole(str, Enum):
    """User roles enumeration."""

    USER = "user"
    ADMIN = "admin"


class SubscriptionTier(str, Enum):
    """Subscription tier enumeration."""

    FREE = "free"
    PRO = "pro"
    ADMIN = "admin"


class Profile(Base, TimestampMixin):
    """Per-user profile with plan flags and planner preferences."""

    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)

    # Business / persona metadata
    business_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    business_category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    target_audience: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    persona: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Monthly content goals
    monthly_goal_short: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    monthly_goal_long: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Plan
    role: Mapped[str] = mapped_column(
        String(20),
        default=UserRole.USER.value,
        nullable=False,
    )
    tier: Mapped[str] = mapped_column(
        String(20),
        default=SubscriptionTier.FREE.value,
        nullable=False,
    )
    has_unlimited_free: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    social_links: Mapped[List["SocialLink"]] = relationship(
        "SocialLink",
        back_populates="profile",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SocialLink.created_at",
    )

    __table_args__ = (
        Index("ix_profiles_role", "role"),
        Index("ix_profiles_tier", "tier"),
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, tier={self.tier}, role={self.role})>"

    @property
    def is_admin(self) -> bool:
        """Check if the profile has the admin role."""
        return self.role == UserRole.ADMIN.value


class SocialLink(Base, TimestampMixin):
    """A social-network profile URL attached to a profile."""

    __tablename__ = "social_links"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )
    profile_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(500), nullable=False)

    profile: Mapped["Profile"] = relationship("Profile", back_populates="social_links")
