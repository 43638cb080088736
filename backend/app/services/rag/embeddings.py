"""
Embedding Generator

Turns a chat message into the query vector used for Pinecone search.
Uses the same OpenAI embedding model as the ingestion script so query
and passage vectors live in the same space.
"""

import logging

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from app.core.config import Settings

logger = logging.getLogger(__name__)


class EmbeddingError(Exception):
    """Raised when the embedding service fails or returns no vector."""


def create_openai_embeddings(settings: Settings) -> OpenAIEmbeddings | None:
    """
    Build the OpenAI embeddings client (single attempt, no SDK retries).

    Returns None when the client cannot be built (e.g. no API key), so chat
    keeps answering without knowledge context.
    """
    try:
        return OpenAIEmbeddings(
            model=settings.openai_embedding_model,
            openai_api_key=settings.openai_api_key or None,
            timeout=settings.request_timeout_seconds,
            max_retries=0,
        )
    except Exception as e:
        logger.warning("[Embeddings] OpenAI embeddings unavailable: %s", e)
        return None


class EmbeddingGenerator:
    def __init__(self, embeddings: Embeddings | None):
        self._embeddings = embeddings

    async def embed(self, text: str | None) -> list[float] | None:
        """
        Embed a piece of text.

        Returns:
            The embedding vector, or None for empty/whitespace-only input
            (the remote service is not called in that case).

        Raises:
            EmbeddingError: If the remote call fails or yields an empty vector.
        """
        if not text or not text.strip():
            return None
        if self._embeddings is None:
            raise EmbeddingError("Embedding client is not configured")

        try:
            vector = await self._embeddings.aembed_query(text)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}") from e

        if not vector:
            raise EmbeddingError("Embedding service returned an empty vector")

        logger.debug("[Embeddings] %d-dim vector for %d chars", len(vector), len(text))
        return list(vector)
