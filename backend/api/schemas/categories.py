"""
Task category schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR)


class CategoryUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    color: str | None = Field(None, pattern=HEX_COLOR)


class CategoryResponse(BaseModel):
    id: str
    user_id: str
    name: str
    color: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
