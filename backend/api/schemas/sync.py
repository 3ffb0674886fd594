"""
CMS sync schemas.
"""

from pydantic import BaseModel, Field


class SyncResponse(BaseModel):
    message: str
    synced: int
    errors: list[str] = Field(default_factory=list)
