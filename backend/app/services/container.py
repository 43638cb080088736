"""
Application services, built once in the FastAPI lifespan and closed on
shutdown. Routers reach them through app.dependencies.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from app.core.config import Settings
from app.core.database import create_engine, create_session_factory
from app.services.chat_pipeline import ChatPipeline
from app.services.dive_analysis import DiveAnalyzer
from app.services.dive_logs import DiveLogReader
from app.services.llm.client import ChatCompletionClient
from app.services.llm.openai_chat import OpenAIChatProvider, create_openai_client
from app.services.memory_store import MemoryStore
from app.services.rag.embeddings import EmbeddingGenerator, create_openai_embeddings
from app.services.rag.retriever import KnowledgeRetriever, create_pinecone_index

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    settings: Settings
    engine: AsyncEngine
    retriever: KnowledgeRetriever
    llm: ChatCompletionClient
    memory: MemoryStore
    dive_logs: DiveLogReader
    pipeline: ChatPipeline
    analyzer: DiveAnalyzer

    async def aclose(self) -> None:
        await self.memory.drain()
        await self.llm.aclose()
        await self.engine.dispose()
        logger.info("[Services] Closed")


def build_services(settings: Settings) -> AppServices:
    engine = create_engine(settings)
    session_factory = create_session_factory(engine)

    embedder = EmbeddingGenerator(create_openai_embeddings(settings))
    retriever = KnowledgeRetriever(
        create_pinecone_index(settings),
        index_name=settings.pinecone_index,
        approved_by=settings.knowledge_approved_by,
        top_k=settings.knowledge_top_k,
        min_length=settings.min_passage_length,
    )
    provider = OpenAIChatProvider(create_openai_client(settings))
    llm = ChatCompletionClient(
        provider,
        model=settings.openai_chat_model,
        temperature=settings.chat_temperature,
        max_output_tokens=settings.chat_max_output_tokens,
    )
    memory = MemoryStore(session_factory, max_entries=settings.memory_max_entries)
    dive_logs = DiveLogReader(session_factory)

    pipeline = ChatPipeline(
        embedder,
        retriever,
        llm,
        memory,
        dive_logs,
        context_turns=settings.memory_context_turns,
        dive_log_limit=settings.dive_log_context_limit,
    )
    # Shares the provider with llm; closed through llm.aclose()
    analyzer = DiveAnalyzer(
        ChatCompletionClient(
            provider,
            model=settings.openai_chat_model,
            temperature=settings.analysis_temperature,
            max_output_tokens=settings.analysis_max_output_tokens,
        ),
        dive_logs,
        min_dives=settings.pattern_min_dives,
    )

    logger.info(
        "[Services] chat_model=%s embedding_model=%s pinecone=%s",
        settings.openai_chat_model,
        settings.openai_embedding_model,
        "on" if retriever.available else "off",
    )
    return AppServices(
        settings=settings,
        engine=engine,
        retriever=retriever,
        llm=llm,
        memory=memory,
        dive_logs=dive_logs,
        pipeline=pipeline,
        analyzer=analyzer,
    )
