"""
LLM Provider Abstraction Layer

Provider implementations translate API calls and raise typed ChatErrors;
the ChatCompletionClient applies sampling defaults and fallback text.
"""

from app.services.llm.client import ChatCompletionClient, FALLBACK_MESSAGES
from app.services.llm.errors import (
    ChatAuthError,
    ChatError,
    ChatRateLimitError,
    EmptyCompletionError,
)
from app.services.llm.models import ChatReply

__all__ = [
    "ChatCompletionClient",
    "FALLBACK_MESSAGES",
    "ChatAuthError",
    "ChatError",
    "ChatRateLimitError",
    "EmptyCompletionError",
    "ChatReply",
]
