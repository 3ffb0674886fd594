"""
Template and case-study schemas, including the admin editors.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from infrastructure.database.models import ContentFormat, SubscriptionTier


class TemplateStructure(BaseModel):
    hook: str | None = None
    body: str = ""
    cta: str | None = None


class TemplateResponse(BaseModel):
    id: str
    title: str
    format: str
    views_potential: str | None = None
    concept: str | None = None
    structure: dict = Field(default_factory=dict)
    vlads_tip: str | None = None
    niche: str | None = None
    is_published: bool = True
    visible_tiers: list[str] = Field(default_factory=list)
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TemplateCreate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=500)
    format: ContentFormat
    views_potential: str | None = Field(None, max_length=100)
    concept: str | None = None
    structure: TemplateStructure
    vlads_tip: str | None = None
    niche: str | None = Field(None, max_length=100)
    is_published: bool = True
    visible_tiers: list[SubscriptionTier] = Field(
        default_factory=list, description="Empty means visible to every tier"
    )


class TemplateUpdate(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    title: str | None = Field(None, min_length=1, max_length=500)
    format: ContentFormat | None = None
    views_potential: str | None = Field(None, max_length=100)
    concept: str | None = None
    structure: TemplateStructure | None = None
    vlads_tip: str | None = None
    niche: str | None = Field(None, max_length=100)
    is_published: bool | None = None
    visible_tiers: list[SubscriptionTier] | None = None


class CaseStudyCreate(BaseModel):
    """Admin-authored case study; stored as a published task."""

    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=500)
    niche: str | None = Field(None, max_length=100)
    format: ContentFormat = ContentFormat.SHORT
    hook: str | None = None
    body: str | None = None
    cta: str | None = None
    analysis: str | None = None
    cover_image_url: str | None = Field(None, max_length=1000)
    result_views: str | None = Field(None, max_length=100)
    result_engagement: str | None = Field(None, max_length=100)
    result_conversions: str | None = Field(None, max_length=100)
    original_template: str | None = Field(None, max_length=500)
    publish_date: datetime | None = None
