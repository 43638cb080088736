"""
OpenAI Chat Completions API Provider

- client.chat.completions.create()
- messages with system / user / assistant roles
- response.choices[0].message.content

SDK exceptions are translated into the ChatError hierarchy so callers never
depend on openai exception types.
"""

import openai
from openai import AsyncOpenAI

from app.core.config import Settings
from app.services.llm.base import ChatProvider
from app.services.llm.errors import (
    ChatAuthError,
    ChatError,
    ChatRateLimitError,
    EmptyCompletionError,
)


def create_openai_client(settings: Settings) -> AsyncOpenAI:
    """Build the shared AsyncOpenAI client (single attempt per call)."""
    return AsyncOpenAI(
        api_key=settings.openai_api_key,
        timeout=settings.request_timeout_seconds,
        max_retries=0,
    )


class OpenAIChatProvider(ChatProvider):
    """Provider for OpenAI Chat Completions API (GPT-4o, GPT-4o-mini, etc.)."""

    provider_name = "openai_chat"

    def __init__(self, client: AsyncOpenAI):
        self.client = client

    async def complete(
        self,
        messages: list[dict],
        model: str,
        max_output_tokens: int = 800,
        temperature: float = 0.7,
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                max_completion_tokens=max_output_tokens,
                temperature=temperature,
            )
        except openai.AuthenticationError as e:
            raise ChatAuthError(str(e)) from e
        except openai.PermissionDeniedError as e:
            raise ChatAuthError(str(e)) from e
        except openai.RateLimitError as e:
            raise ChatRateLimitError(str(e)) from e
        except openai.OpenAIError as e:
            raise ChatError(str(e)) from e

        if not response.choices:
            raise EmptyCompletionError("No choices returned from OpenAI")

        content = response.choices[0].message.content
        if not content or not content.strip():
            raise EmptyCompletionError("Empty response from OpenAI Chat Completions API")
        return content

    async def aclose(self) -> None:
        await self.client.close()
