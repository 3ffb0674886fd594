"""
AI copywriting assistant routes.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai import (
    AIConfigurationError,
    AIServiceError,
    ChatMessage,
    TaskContext,
    assistant_service,
)
from api.dependencies import get_current_user
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.ai import ChatRequest, ChatResponse, CreditsInfo, CreditsResponse
from core.ai_response import parse_structured_response
from core.plans import effective_tier, monthly_ai_credits
from infrastructure.config.settings import settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Profile
from services.ai_credits import INSUFFICIENT_CREDITS, AICreditService, InsufficientCreditsError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def _credit_limit(user: Profile) -> int | None:
    return monthly_ai_credits(
        effective_tier(user.tier, user.is_admin), settings.ai_monthly_credit_limit
    )


@router.get("/credits", response_model=CreditsResponse)
async def get_credits(
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
):
    """Current month's AI credit usage."""
    balance = await AICreditService(db).get_balance(current_user.id, _credit_limit(current_user))
    return CreditsResponse(
        used=balance.used,
        remaining=balance.remaining,
        max=balance.max,
        reset_at=balance.reset_at,
    )


@router.post("/chat", response_model=ChatResponse)
@limiter.limit(get_rate_limit("ai_chat"))
async def chat(
    request: Request,
    body: ChatRequest,
    current_user: Annotated[Profile, Depends(get_current_user)],
    db: AsyncSession = Depends(get_db),
):
    """
    Ask the assistant about the task being edited.

    One credit is spent per call, before the model is asked. A failed
    completion does not refund it.
    """
    if not assistant_service.is_configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AI service is not configured",
        )

    limit = _credit_limit(current_user)
    try:
        balance = await AICreditService(db).consume(current_user.id, limit)
    except InsufficientCreditsError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "Iskoristili ste sve AI kredite za ovaj mesec.",
                "error_code": INSUFFICIENT_CREDITS,
                "credits_remaining": e.balance.remaining,
                "credits_used": e.balance.used,
                "max_credits": e.balance.max,
                "reset_at": e.balance.reset_at.isoformat(),
            },
        ) from e

    context = TaskContext(**(body.task_context.model_dump() if body.task_context else {}))
    messages = [ChatMessage(role=m.role, content=m.content) for m in body.messages]
    try:
        reply = await assistant_service.reply(messages, context)
    except AIConfigurationError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="AI service is not configured",
        ) from e
    except AIServiceError as e:
        logger.error("AI completion failed for user %s: %s", current_user.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get a response from the AI service",
        ) from e

    parsed = parse_structured_response(reply)
    return ChatResponse(
        message=reply,
        credits=CreditsInfo(used=balance.used, remaining=balance.remaining, max=balance.max),
        suggestion=None if parsed.is_empty else parsed.as_dict(),
    )
