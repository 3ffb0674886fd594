"""
Integration tests for the AI assistant routes.

The Anthropic client is never called: ``assistant_service`` is patched
in the route module.
"""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai import AIServiceError
from core.dates import first_day_of_next_month
from infrastructure.database.models import AICredits, Profile

CHAT_BODY = {
    "messages": [{"role": "user", "content": "Napiši mi hook za video o kafi"}],
    "taskContext": {"format": "Kratka Forma", "niche": "kafa", "title": "Jutarnja kafa"},
}


@pytest.fixture
def assistant():
    mock = MagicMock()
    mock.is_configured = True
    mock.reply = AsyncMock(return_value="HOOK: Da li piješ kafu pogrešno?\nCTA: Zaprati za još")
    with patch("api.routes.ai.assistant_service", mock):
        yield mock


async def seed_credits(db: AsyncSession, user_id: str, used: int) -> None:
    now = datetime.now(UTC)
    db.add(
        AICredits(
            user_id=user_id,
            credits_used=used,
            month=now.month,
            year=now.year,
            reset_at=first_day_of_next_month(now),
        )
    )
    await db.commit()


async def credits_used(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(AICredits.credits_used).where(AICredits.user_id == user_id)
    )
    return result.scalar_one()


class TestChat:
    """Tests for POST /api/ai/chat."""

    @pytest.mark.asyncio
    async def test_reply_spends_one_credit(
        self, async_client: AsyncClient, auth_headers: dict, assistant, free_user: Profile, db_session: AsyncSession
    ):
        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"].startswith("HOOK: Da li")
        assert data["credits"] == {"used": 1, "remaining": 499, "max": 500}
        assert data["suggestion"]["hook"] == "Da li piješ kafu pogrešno?"
        assert data["suggestion"]["cta"] == "Zaprati za još"
        assert await credits_used(db_session, free_user.id) == 1

        messages, context = assistant.reply.call_args.args
        assert messages[0].content == "Napiši mi hook za video o kafi"
        assert context.niche == "kafa"

    @pytest.mark.asyncio
    async def test_plain_reply_has_no_suggestion(self, async_client: AsyncClient, auth_headers: dict, assistant):
        assistant.reply.return_value = "Probaj da počneš pitanjem."

        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=auth_headers)

        assert response.json()["suggestion"] is None

    @pytest.mark.asyncio
    async def test_exhausted_credits(
        self, async_client: AsyncClient, auth_headers: dict, assistant, free_user: Profile, db_session: AsyncSession
    ):
        await seed_credits(db_session, free_user.id, used=500)

        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=auth_headers)

        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_CREDITS"
        assert data["credits_remaining"] == 0
        assert data["credits_used"] == 500
        assert data["max_credits"] == 500
        assert "reset_at" in data
        assistant.reply.assert_not_called()
        assert await credits_used(db_session, free_user.id) == 500

    @pytest.mark.asyncio
    async def test_admin_is_unlimited(
        self, async_client: AsyncClient, admin_headers: dict, assistant, admin_user: Profile, db_session: AsyncSession
    ):
        await seed_credits(db_session, admin_user.id, used=10_000)

        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=admin_headers)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["credits"]["remaining"] is None

    @pytest.mark.asyncio
    async def test_not_configured(self, async_client: AsyncClient, auth_headers: dict, assistant, free_user: Profile, db_session: AsyncSession):
        assistant.is_configured = False

        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=auth_headers)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json() == {"error": "AI service is not configured"}
        result = await db_session.execute(select(AICredits).where(AICredits.user_id == free_user.id))
        assert result.scalar_one_or_none() is None

    @pytest.mark.asyncio
    async def test_upstream_failure_keeps_credit_spent(
        self, async_client: AsyncClient, auth_headers: dict, assistant, free_user: Profile, db_session: AsyncSession
    ):
        assistant.reply.side_effect = AIServiceError("No response from AI")

        response = await async_client.post("/api/ai/chat", json=CHAT_BODY, headers=auth_headers)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert await credits_used(db_session, free_user.id) == 1

    @pytest.mark.asyncio
    async def test_empty_messages_rejected(self, async_client: AsyncClient, auth_headers: dict, assistant):
        response = await async_client.post("/api/ai/chat", json={"messages": []}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"].startswith("messages")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "messages",
        [
            [{"role": "user", "content": "   "}],
            [{"role": "assistant", "content": "Kako mogu da pomognem?"}, {"role": "user", "content": "\n\t"}],
        ],
    )
    async def test_blank_conversation_costs_nothing(
        self,
        async_client: AsyncClient,
        auth_headers: dict,
        assistant,
        free_user: Profile,
        db_session: AsyncSession,
        messages: list,
    ):
        response = await async_client.post("/api/ai/chat", json={"messages": messages}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "non-empty user message" in response.json()["error"]
        assistant.reply.assert_not_called()
        rows = await db_session.execute(select(AICredits).where(AICredits.user_id == free_user.id))
        assert rows.scalars().all() == []


class TestCredits:
    """Tests for GET /api/ai/credits."""

    @pytest.mark.asyncio
    async def test_fresh_month(self, async_client: AsyncClient, auth_headers: dict):
        response = await async_client.get("/api/ai/credits", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["used"] == 0
        assert data["remaining"] == 500
        assert data["max"] == 500

    @pytest.mark.asyncio
    async def test_reports_usage(self, async_client: AsyncClient, auth_headers: dict, free_user: Profile, db_session: AsyncSession):
        await seed_credits(db_session, free_user.id, used=42)

        response = await async_client.get("/api/ai/credits", headers=auth_headers)

        assert response.json()["remaining"] == 458
