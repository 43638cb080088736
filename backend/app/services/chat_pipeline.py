"""
Chat Pipeline

One coaching turn, strictly in order:
memory -> level/depth range -> dive data safety check -> embedding ->
knowledge retrieval -> dive logs -> prompt -> LLM -> memory write.

Every downstream failure degrades locally (no context, fallback reply);
only input validation is the caller's job.
"""

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field

from app.services.coaching.dive_data import (
    extract_dive_data,
    format_safety_alert,
    validate_dive_data,
)
from app.services.coaching.level import (
    classify_level,
    depth_range,
    merge_profile,
    profile_depth,
)
from app.services.coaching.prompts import MAX_PROMPT_PASSAGES, assemble_messages
from app.services.dive_logs import DiveLogReader
from app.services.llm.client import ChatCompletionClient
from app.services.memory_store import MemorySnapshot, MemoryStore, make_entry
from app.services.rag.embeddings import EmbeddingError, EmbeddingGenerator
from app.services.rag.retriever import KnowledgeRetriever

logger = logging.getLogger(__name__)


class ChatOutcome(str, enum.Enum):
    GENERATED = "generated"
    FALLBACK = "fallback"
    SAFETY_ALERT = "safety_alert"


@dataclass
class ChatResult:
    content: str
    outcome: ChatOutcome
    user_level: str
    depth_range: str
    context_chunks: int = 0
    dive_logs_used: int = 0
    memory_used: bool = False
    embed_mode: bool = False
    processing_time_ms: int = 0
    memory_task: asyncio.Task | None = field(default=None, repr=False)

    def metadata(self) -> dict:
        return {
            "userLevel": self.user_level,
            "depthRange": self.depth_range,
            "contextChunks": self.context_chunks,
            "processingTime": self.processing_time_ms,
            "embedMode": self.embed_mode,
            "diveLogsUsed": self.dive_logs_used,
            "memoryUsed": self.memory_used,
            "outcome": self.outcome.value,
        }


class ChatPipeline:
    def __init__(
        self,
        embedder: EmbeddingGenerator,
        retriever: KnowledgeRetriever,
        llm: ChatCompletionClient,
        memory: MemoryStore,
        dive_logs: DiveLogReader,
        context_turns: int = 3,
        dive_log_limit: int = 5,
    ):
        self.embedder = embedder
        self.retriever = retriever
        self.llm = llm
        self.memory = memory
        self.dive_logs = dive_logs
        self.context_turns = context_turns
        self.dive_log_limit = dive_log_limit

    async def run(
        self,
        message: str,
        user_id: str | None = None,
        profile: dict | None = None,
        embed_mode: bool = False,
    ) -> ChatResult:
        """
        Run one chat turn for an already-validated message.

        The memory write, when one happens, is started as a task and returned
        on the result so the caller decides whether to await it.
        """
        started = time.perf_counter()

        snapshot = await self.memory.fetch(user_id) if user_id else MemorySnapshot()
        merged = merge_profile(snapshot.profile, profile)
        level = classify_level(merged)
        bucket = depth_range(profile_depth(merged))

        result = ChatResult(
            content="",
            outcome=ChatOutcome.GENERATED,
            user_level=level,
            depth_range=bucket,
            embed_mode=embed_mode,
            memory_used=bool(snapshot.entries),
        )

        dive_data = extract_dive_data(message)
        errors = validate_dive_data(dive_data) if dive_data is not None else []
        if errors:
            logger.warning("[Chat] Safety alert for %s: %s", user_id or "anonymous", errors)
            result.content = format_safety_alert(errors)
            result.outcome = ChatOutcome.SAFETY_ALERT
            result.processing_time_ms = self._elapsed_ms(started)
            return result

        passages = []
        try:
            vector = await self.embedder.embed(message)
        except EmbeddingError as e:
            logger.warning("[Chat] Embedding failed, continuing without knowledge: %s", e)
            vector = None
        if vector:
            passages = await self.retriever.search(vector)
        result.context_chunks = min(len(passages), MAX_PROMPT_PASSAGES)

        logs = await self.dive_logs.recent(user_id, self.dive_log_limit)
        result.dive_logs_used = len(logs)

        history = []
        if self.context_turns > 0:
            history = [e.model_dump() for e in snapshot.entries[-self.context_turns:]]

        messages = assemble_messages(
            message,
            level,
            passages,
            embed_mode=embed_mode,
            dive_logs=logs,
            profile=merged,
            history=history,
        )
        reply = await self.llm.complete(messages)
        result.content = reply.content

        if reply.failed:
            result.outcome = ChatOutcome.FALLBACK
        elif user_id:
            result.memory_task = self.memory.schedule_save(
                user_id, [make_entry(message, reply.content)], merged
            )

        result.processing_time_ms = self._elapsed_ms(started)
        logger.info(
            "[Chat] level=%s depth=%s chunks=%d logs=%d outcome=%s %dms",
            level,
            bucket,
            result.context_chunks,
            result.dive_logs_used,
            result.outcome.value,
            result.processing_time_ms,
        )
        return result

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.perf_counter() - started) * 1000)
