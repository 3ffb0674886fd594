# AI Adapters
# Anthropic integration

from .anthropic_adapter import (
    AIConfigurationError,
    AIServiceError,
    AnthropicAssistantService,
    ChatMessage,
    TaskContext,
    assistant_service,
)

__all__ = [
    "AnthropicAssistantService",
    "assistant_service",
    "AIServiceError",
    "AIConfigurationError",
    "ChatMessage",
    "TaskContext",
]
