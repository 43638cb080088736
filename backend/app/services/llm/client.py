"""
Chat Completion Client

Calls the chat provider with fixed sampling parameters and absorbs every
provider failure into a user-facing fallback string. This is the only place
where ChatError turns into text, so the HTTP layer can always answer 200
with a chat-shaped payload.
"""

import logging

from app.services.llm.base import ChatProvider
from app.services.llm.errors import ChatAuthError, ChatError, ChatRateLimitError
from app.services.llm.models import ChatReply

logger = logging.getLogger(__name__)


AUTH_FALLBACK = (
    "⚠️ I can't reach the AI coaching service right now. "
    "Please check the API configuration or contact support."
)
RATE_LIMIT_FALLBACK = (
    "⚠️ Too many requests at once. Please wait a moment and try again."
)
GENERIC_FALLBACK = (
    "⚠️ I'm having technical difficulties connecting to the AI service. "
    "Please try again in a moment, and if the issue persists, contact support."
)

FALLBACK_MESSAGES = (AUTH_FALLBACK, RATE_LIMIT_FALLBACK, GENERIC_FALLBACK)


class ChatCompletionClient:
    def __init__(
        self,
        provider: ChatProvider,
        model: str,
        temperature: float = 0.7,
        max_output_tokens: int = 800,
    ):
        self.provider = provider
        self.model = model
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    async def complete(self, messages: list[dict]) -> ChatReply:
        """Return the trimmed reply, or a fallback reply flagged as failed."""
        try:
            content = await self.provider.complete(
                messages=messages,
                model=self.model,
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            )
        except ChatAuthError as e:
            logger.error("[LLM] Authentication failed: %s", e)
            return ChatReply(content=AUTH_FALLBACK, failed=True, error_kind="auth")
        except ChatRateLimitError as e:
            logger.warning("[LLM] Rate limited: %s", e)
            return ChatReply(content=RATE_LIMIT_FALLBACK, failed=True, error_kind="rate_limit")
        except ChatError as e:
            logger.error("[LLM] Completion failed: %s", e)
            return ChatReply(content=GENERIC_FALLBACK, failed=True, error_kind="error")
        except Exception:
            logger.exception("[LLM] Unexpected provider failure")
            return ChatReply(content=GENERIC_FALLBACK, failed=True, error_kind="error")

        content = (content or "").strip()
        if not content:
            return ChatReply(content=GENERIC_FALLBACK, failed=True, error_kind="error")

        logger.info(
            "[LLM] model=%s provider=%s reply=%d chars",
            self.model,
            self.provider.provider_name,
            len(content),
        )
        return ChatReply(content=content)

    async def aclose(self) -> None:
        await self.provider.aclose()
