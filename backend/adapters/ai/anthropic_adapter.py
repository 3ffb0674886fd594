"""
Anthropic Claude adapter for the planner's copywriting assistant.
"""

import asyncio
import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

import anthropic

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    anthropic.RateLimitError,
    anthropic.APIConnectionError,
    anthropic.InternalServerError,
)


class AIServiceError(Exception):
    """Raised when the completion API fails or returns nothing usable."""


class AIConfigurationError(AIServiceError):
    """Raised when no API key is configured."""


async def _retry_with_backoff(coro_factory, max_retries=3, base_delay=1.0):
    """Retry an async operation with exponential backoff + jitter."""
    for attempt in range(max_retries + 1):
        try:
            return await coro_factory()
        except _TRANSIENT_ERRORS as e:
            if attempt == max_retries:
                raise
            delay = base_delay * (2 ** attempt) + random.uniform(0, 1)
            logger.warning("Transient API error (attempt %d/%d), retrying in %.1fs: %s", attempt + 1, max_retries, delay, str(e))
            await asyncio.sleep(delay)


@dataclass
class TaskContext:
    """The task being edited when the assistant is opened."""

    format: Optional[str] = None
    niche: Optional[str] = None
    title: Optional[str] = None
    hook: Optional[str] = None
    body: Optional[str] = None
    cta: Optional[str] = None


@dataclass
class ChatMessage:
    role: str  # "user" or "assistant"
    content: str


class AnthropicAssistantService:
    """Copywriting assistant backed by Anthropic Claude."""

    def __init__(self, api_key: Optional[str] = None):
        api_key = api_key if api_key is not None else settings.anthropic_api_key
        if api_key:
            self._client = anthropic.AsyncAnthropic(
                api_key=api_key,
                timeout=float(settings.anthropic_timeout),
            )
        else:
            self._client = None
        self._model = settings.anthropic_model
        self._max_tokens = settings.anthropic_max_tokens
        self._temperature = settings.anthropic_temperature

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    @staticmethod
    def _sanitize_prompt_input(text: Optional[str], max_length: int) -> str:
        """Strip control characters and limit length to prevent prompt injection."""
        if not text:
            return ""
        text = re.sub(r'[\r\n\t\x00-\x1f\x7f]', ' ', text)
        text = re.sub(r' +', ' ', text).strip()
        return text[:max_length]

    def build_system_prompt(self, context: TaskContext) -> str:
        """Build the system prompt from the task being edited."""
        not_set = "Nije navedeno"
        fmt = self._sanitize_prompt_input(context.format, 50) or not_set
        niche = self._sanitize_prompt_input(context.niche, 100) or not_set
        title = self._sanitize_prompt_input(context.title, 300) or not_set

        current = []
        for label, value in (("Hook", context.hook), ("Body", context.body), ("CTA", context.cta)):
            cleaned = self._sanitize_prompt_input(value, 2000)
            if cleaned:
                current.append(f"- Trenutni {label}: {cleaned}")
        current_fields = "\n".join(current) if current else "- Polja skripte su još prazna"

        return f"""Ti si ekspert za kreiranje viralnog sadržaja za društvene mreže.
Pomažeš korisniku da napiše naslov, hook, glavni deo (body) i poziv na akciju (CTA).

Kontekst zadatka:
- Format: {fmt}
- Niša: {niche}
- Naslov: {title}
{current_fields}

Smernice:
- "Kratka Forma": kratak, udarni sadržaj za Reels/TikTok (ispod 60 sekundi).
- "Duga Forma": detaljan sadržaj za YouTube/Facebook, ceo scenario može biti u jednom polju.
- Hook mora da privuče pažnju u prve 3 sekunde i izazove radoznalost.
- Body isporučuje vrednost i zadržava gledaoca.
- CTA je jasan i konkretan.
- Piši na srpskom jeziku, pismom kojim piše korisnik.

Kada predlažeš skriptu, označi delove sa NASLOV:, HOOK:, BODY: i CTA: kako bi se lako kopirali u odgovarajuća polja."""

    @staticmethod
    def _normalize_messages(messages: list[ChatMessage]) -> list[dict]:
        """Drop empty and leading assistant turns and merge consecutive same-role turns."""
        normalized: list[dict] = []
        for message in messages:
            content = (message.content or "").strip()
            if message.role not in ("user", "assistant") or not content:
                continue
            if not normalized and message.role != "user":
                continue
            if normalized and normalized[-1]["role"] == message.role:
                normalized[-1]["content"] += "\n\n" + content
            else:
                normalized.append({"role": message.role, "content": content})
        return normalized

    async def reply(self, messages: list[ChatMessage], context: TaskContext) -> str:
        """
        Forward the conversation to Claude and return its text verbatim.

        Args:
            messages: Chat history, oldest first
            context: Task the user is working on

        Returns:
            Assistant reply text

        Raises:
            AIConfigurationError: No API key configured
            AIServiceError: The API failed or returned no text
        """
        if not self._client:
            raise AIConfigurationError("AI service is not configured")

        conversation = self._normalize_messages(messages)
        if not conversation:
            raise AIServiceError("Conversation has no user message")

        system_prompt = self.build_system_prompt(context)
        try:
            message = await _retry_with_backoff(lambda: self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
                system=system_prompt,
                messages=conversation,
            ))
        except anthropic.APIError as e:
            logger.error("Assistant completion failed: %s", e)
            raise AIServiceError("Failed to generate AI response") from e

        text = "".join(block.text for block in message.content if getattr(block, "type", None) == "text")
        if not text:
            raise AIServiceError("No response from AI")
        logger.debug("Assistant reply generated (%d chars)", len(text))
        return text


# Singleton instance
assistant_service = AnthropicAssistantService()
