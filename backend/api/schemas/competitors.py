"""
Competitor tracking schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class FeedItem(BaseModel):
    id: str
    title: str
    views: str | None = None
    date: str | None = None
    type: str | None = None


class CompetitorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    url: str = Field(..., min_length=1, max_length=1000)
    feed: list[FeedItem] | None = None


class CompetitorUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    url: str | None = Field(None, min_length=1, max_length=1000)
    icon: str | None = None
    niche: str | None = None
    feed: list[FeedItem] | None = None


class CompetitorResponse(BaseModel):
    id: str
    user_id: str
    name: str
    url: str
    icon: str | None = None
    niche: str | None = None
    feed: list[FeedItem] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
