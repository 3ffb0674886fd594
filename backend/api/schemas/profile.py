"""
Profile schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class SocialLinkResponse(BaseModel):
    id: str
    url: str


class ProfileResponse(BaseModel):
    id: str
    email: str | None = None
    business_name: str | None = None
    business_category: str | None = None
    target_audience: str | None = None
    persona: str | None = None
    monthly_goal_short: int = 0
    monthly_goal_long: int = 0
    role: str
    tier: str
    has_unlimited_free: bool = False
    social_links: list[SocialLinkResponse] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update. ``social_links`` replaces the whole set."""

    business_name: str | None = Field(None, max_length=255)
    business_category: str | None = Field(None, max_length=100)
    target_audience: str | None = None
    persona: str | None = None
    monthly_goal_short: int | None = Field(None, ge=0)
    monthly_goal_long: int | None = Field(None, ge=0)
    social_links: list[str] | None = Field(None, max_length=20)
