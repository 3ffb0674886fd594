"""
AI assistant request/response schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessageIn(BaseModel):
    """One turn of the conversation."""

    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1, max_length=20000)


class TaskContextIn(BaseModel):
    """The task being edited, used to build the system prompt."""

    format: str | None = None
    niche: str | None = None
    title: str | None = None
    hook: str | None = None
    body: str | None = None
    cta: str | None = None


class ChatRequest(BaseModel):
    """Request body of ``POST /ai/chat``."""

    messages: list[ChatMessageIn] = Field(..., min_length=1, max_length=50)
    task_context: TaskContextIn | None = Field(None, alias="taskContext")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("messages")
    @classmethod
    def require_user_message(cls, v: list[ChatMessageIn]) -> list[ChatMessageIn]:
        """Blank turns are dropped before the model call, so one real user turn must remain."""
        if not any(m.role == "user" and m.content.strip() for m in v):
            raise ValueError("Conversation must contain a non-empty user message")
        return v


class CreditsInfo(BaseModel):
    """Credit balance after a request. ``None`` means unlimited."""

    used: int
    remaining: int | None
    max: int | None


class ChatResponse(BaseModel):
    message: str
    credits: CreditsInfo
    suggestion: dict | None = Field(
        None, description="Title, hook, body and CTA parsed from the reply, when present"
    )


class CreditsResponse(CreditsInfo):
    reset_at: datetime
