"""
Abstract base class for chat LLM providers.

Each provider implements the API-specific translation layer and raises
the typed errors from app.services.llm.errors. Fallback text and sampling
defaults are handled by the ChatCompletionClient.
"""

from abc import ABC, abstractmethod


class ChatProvider(ABC):
    """Abstract base class for all chat LLM providers."""

    provider_name: str = "base"

    @abstractmethod
    async def complete(
        self,
        messages: list[dict],
        model: str,
        max_output_tokens: int = 800,
        temperature: float = 0.7,
    ) -> str:
        """
        Send chat messages to the LLM and return the raw reply text.

        Args:
            messages: List of message dicts with "role" and "content"
            model: The API model identifier (e.g., "gpt-4o")
            max_output_tokens: Maximum tokens in the response
            temperature: Sampling temperature

        Returns:
            Raw text of the first choice

        Raises:
            ChatAuthError: The API key was rejected
            ChatRateLimitError: The request was throttled or quota is exhausted
            EmptyCompletionError: The model returned no text
            ChatError: Any other provider failure
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        return None
