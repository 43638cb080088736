import os
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Set required environment variables BEFORE importing app code
os.environ["OPENAI_API_KEY"] = "sk-test-key"
os.environ["PINECONE_API_KEY"] = ""
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"

from app.core.config import Settings  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.dependencies import (  # noqa: E402
    get_app_settings,
    get_chat_pipeline,
    get_dive_analyzer,
    get_dive_log_reader,
    get_memory_store,
    get_retriever,
)
from app.main import app  # noqa: E402
from app.models import DiveLog, UserMemory  # noqa: E402,F401
from app.services.chat_pipeline import ChatPipeline  # noqa: E402
from app.services.dive_analysis import DiveAnalyzer  # noqa: E402
from app.services.dive_logs import DiveLogReader  # noqa: E402
from app.services.llm.base import ChatProvider  # noqa: E402
from app.services.llm.client import ChatCompletionClient  # noqa: E402
from app.services.memory_store import MemoryStore  # noqa: E402
from app.services.rag.embeddings import EmbeddingGenerator  # noqa: E402
from app.services.rag.retriever import KnowledgeRetriever  # noqa: E402


class FakeProvider(ChatProvider):
    """Records every call and returns a canned reply or raises a canned error."""

    provider_name = "fake"

    def __init__(self, reply: str = "Ascend at about 1 m/s and exhale at the surface.", error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    async def complete(self, messages, model, max_output_tokens=800, temperature=0.7):
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "max_output_tokens": max_output_tokens,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


def make_match(text: str, score: float, category: str = "safety") -> dict:
    return {
        "id": f"doc-{score}",
        "score": score,
        "metadata": {
            "text": text,
            "category": category,
            "source_file": "safety.md",
            "approvedBy": "Koval",
        },
    }


@pytest.fixture
def settings():
    return Settings(
        openai_api_key="sk-test-key",
        pinecone_api_key="",
        database_url="sqlite+aiosqlite://",
    )


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def embeddings():
    mock = MagicMock()
    mock.aembed_query = AsyncMock(return_value=[0.1] * 8)
    return mock


@pytest.fixture
def pinecone_index():
    index = MagicMock()
    index.query.return_value = {
        "matches": [
            make_match("Ascend at a steady pace and never rush the last 10 meters.", 0.91),
            make_match("Always dive with a buddy who watches your full recovery.", 0.87),
            make_match("Use hook breathing for at least three breaths after surfacing.", 0.82),
            make_match("Stop the dive at the first sign of equalization trouble.", 0.75),
        ]
    }
    index.describe_index_stats.return_value = {"total_vector_count": 42}
    return index


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def memory_store(session_factory):
    return MemoryStore(session_factory, max_entries=20)


@pytest.fixture
def dive_log_reader(session_factory):
    return DiveLogReader(session_factory)


@pytest.fixture
def retriever(pinecone_index):
    return KnowledgeRetriever(pinecone_index, index_name="koval-deep-ai", approved_by="Koval")


@pytest.fixture
def pipeline(embeddings, retriever, provider, memory_store, dive_log_reader):
    return ChatPipeline(
        EmbeddingGenerator(embeddings),
        retriever,
        ChatCompletionClient(provider, model="gpt-4o"),
        memory_store,
        dive_log_reader,
    )


@pytest.fixture
def analyzer(provider, dive_log_reader):
    return DiveAnalyzer(ChatCompletionClient(provider, model="gpt-4o", temperature=0.1), dive_log_reader)


@pytest_asyncio.fixture
async def client(settings, pipeline, memory_store, dive_log_reader, retriever, analyzer):
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_chat_pipeline] = lambda: pipeline
    app.dependency_overrides[get_memory_store] = lambda: memory_store
    app.dependency_overrides[get_dive_log_reader] = lambda: dive_log_reader
    app.dependency_overrides[get_retriever] = lambda: retriever
    app.dependency_overrides[get_dive_analyzer] = lambda: analyzer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
