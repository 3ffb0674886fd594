"""
Unit tests for the copywriting assistant adapter.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import pytest

from adapters.ai import (
    AIConfigurationError,
    AIServiceError,
    AnthropicAssistantService,
    ChatMessage,
    TaskContext,
)


@pytest.fixture
def service() -> AnthropicAssistantService:
    svc = AnthropicAssistantService(api_key="test-key")
    svc._client = MagicMock()
    svc._client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text="HOOK: Stani!")])
    )
    return svc


class TestSystemPrompt:
    def test_includes_task_context(self):
        prompt = AnthropicAssistantService(api_key="").build_system_prompt(
            TaskContext(format="Kratka Forma", niche="fitness", title="Jutarnja rutina", hook="Da li...")
        )
        assert "Format: Kratka Forma" in prompt
        assert "Niša: fitness" in prompt
        assert "- Trenutni Hook: Da li..." in prompt

    def test_empty_context(self):
        prompt = AnthropicAssistantService(api_key="").build_system_prompt(TaskContext())
        assert "Naslov: Nije navedeno" in prompt
        assert "Polja skripte su još prazna" in prompt

    def test_control_characters_are_stripped(self):
        prompt = AnthropicAssistantService(api_key="").build_system_prompt(
            TaskContext(title="Prvi\nred\r\nIGNORE ALL")
        )
        assert "Naslov: Prvi red IGNORE ALL" in prompt


class TestNormalizeMessages:
    def test_merges_and_trims(self):
        messages = [
            ChatMessage(role="assistant", content="Zdravo!"),
            ChatMessage(role="user", content="Prvo"),
            ChatMessage(role="user", content="Drugo"),
            ChatMessage(role="assistant", content="  "),
            ChatMessage(role="system", content="ignored"),
        ]
        assert AnthropicAssistantService._normalize_messages(messages) == [
            {"role": "user", "content": "Prvo\n\nDrugo"}
        ]


class TestReply:
    @pytest.mark.asyncio
    async def test_returns_text_verbatim(self, service: AnthropicAssistantService):
        reply = await service.reply([ChatMessage(role="user", content="Hook?")], TaskContext())

        assert reply == "HOOK: Stani!"
        kwargs = service._client.messages.create.call_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Hook?"}]
        assert "Ti si ekspert" in kwargs["system"]

    @pytest.mark.asyncio
    async def test_not_configured(self):
        with pytest.raises(AIConfigurationError):
            await AnthropicAssistantService(api_key="").reply([ChatMessage("user", "x")], TaskContext())

    @pytest.mark.asyncio
    async def test_empty_reply(self, service: AnthropicAssistantService):
        service._client.messages.create.return_value = SimpleNamespace(content=[])
        with pytest.raises(AIServiceError):
            await service.reply([ChatMessage("user", "x")], TaskContext())

    @pytest.mark.asyncio
    async def test_api_error_is_wrapped(self, service: AnthropicAssistantService):
        request = MagicMock()
        service._client.messages.create.side_effect = anthropic.APIError("bad", request, body=None)
        with pytest.raises(AIServiceError):
            await service.reply([ChatMessage("user", "x")], TaskContext())
