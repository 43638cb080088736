"""
Knowledge Retriever Service

Queries the Pinecone index at runtime to find passages of Daniel Koval's
methodology that are semantically close to the diver's question.

How retrieval works:
1. The message has already been embedded by the EmbeddingGenerator.
2. Pinecone compares the vector against stored passage vectors.
3. A metadata filter restricts results to approved content (approvedBy).
4. Short fragments are dropped and the top-K passages are returned,
   best score first.

Any failure degrades to "no context": callers treat an empty list as a
normal outcome.
"""

import asyncio
import logging
from typing import Any

from pinecone import Pinecone
from pydantic import BaseModel

from app.core.config import Settings

logger = logging.getLogger(__name__)


def create_pinecone_index(settings: Settings) -> Any | None:
    """
    Connect to the knowledge index.

    Returns None when Pinecone is not configured or cannot be reached, so the
    app still starts and answers without knowledge context. With
    settings.pinecone_host set, no lookup call is made at startup.
    """
    if not settings.pinecone_api_key:
        logger.warning("[RAG] PINECONE_API_KEY not set, knowledge retrieval disabled")
        return None
    try:
        client = Pinecone(api_key=settings.pinecone_api_key)
        if settings.pinecone_host:
            return client.Index(host=settings.pinecone_host)
        return client.Index(settings.pinecone_index)
    except Exception as e:
        logger.warning(
            "[RAG] Pinecone index %s unavailable, knowledge retrieval disabled: %s",
            settings.pinecone_index,
            e,
        )
        return None


class KnowledgePassage(BaseModel):
    text: str
    score: float = 0.0
    category: str | None = None
    source_file: str | None = None


def _field(obj: Any, name: str, default: Any = None) -> Any:
    # Pinecone responses support both attribute and item access
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


class KnowledgeRetriever:
    def __init__(
        self,
        index: Any | None,
        index_name: str = "",
        approved_by: str = "Koval",
        top_k: int = 5,
        min_length: int = 10,
    ):
        """
        Args:
            index: A Pinecone Index handle, or None when Pinecone is not configured
            index_name: Name of the index (for status reporting)
            approved_by: Value the `approvedBy` metadata field must equal
            top_k: Default number of passages to return
            min_length: Passages shorter than this are treated as noise
        """
        self._index = index
        self.index_name = index_name
        self.approved_by = approved_by
        self.top_k = top_k
        self.min_length = min_length

    @property
    def available(self) -> bool:
        return self._index is not None

    async def search(
        self, vector: list[float] | None, top_k: int | None = None
    ) -> list[KnowledgePassage]:
        """Return up to top_k approved passages ordered by descending score."""
        k = self.top_k if top_k is None else top_k
        if self._index is None:
            logger.info("[RAG] Pinecone not configured, skipping knowledge retrieval")
            return []
        if not vector or k <= 0:
            return []

        try:
            result = await asyncio.to_thread(
                self._index.query,
                vector=vector,
                top_k=k,
                include_metadata=True,
                filter={"approvedBy": {"$eq": self.approved_by}},
            )
        except Exception as e:
            logger.warning("[RAG] Pinecone query failed: %s", e)
            return []

        passages = []
        for match in _field(result, "matches") or []:
            metadata = _field(match, "metadata") or {}
            text = metadata.get("text") or metadata.get("content") or ""
            text = str(text).strip()
            if len(text) < self.min_length:
                continue
            passages.append(
                KnowledgePassage(
                    text=text,
                    score=float(_field(match, "score") or 0.0),
                    category=metadata.get("category"),
                    source_file=metadata.get("source_file"),
                )
            )

        passages.sort(key=lambda p: p.score, reverse=True)
        passages = passages[:k]
        logger.info("[RAG] Retrieved %d knowledge passages", len(passages))
        return passages

    async def status(self) -> dict:
        """Return status info about the index for the /rag/status endpoint."""
        if self._index is None:
            return {
                "available": False,
                "vector_count": 0,
                "index_name": self.index_name,
                "approved_by": self.approved_by,
                "message": "Pinecone not configured. Set PINECONE_API_KEY.",
            }

        try:
            stats = await asyncio.to_thread(self._index.describe_index_stats)
        except Exception as e:
            logger.warning("[RAG] Failed to read index stats: %s", e)
            return {
                "available": False,
                "vector_count": 0,
                "index_name": self.index_name,
                "approved_by": self.approved_by,
                "message": "Failed to reach Pinecone index.",
            }

        return {
            "available": True,
            "vector_count": int(_field(stats, "total_vector_count") or 0),
            "index_name": self.index_name,
            "approved_by": self.approved_by,
            "message": "",
        }
