from unittest.mock import MagicMock, patch

import pytest

from app.core.config import Settings
from app.main import app, lifespan
from app.services.container import build_services
from app.services.rag.embeddings import EmbeddingError, create_openai_embeddings
from app.services.rag.retriever import create_pinecone_index


def make_settings(**overrides) -> Settings:
    values = {
        "openai_api_key": "sk-test-key",
        "pinecone_api_key": "",
        "database_url": "sqlite+aiosqlite://",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.mark.asyncio
async def test_unreachable_pinecone_disables_retrieval():
    settings = make_settings(pinecone_api_key="pc-bogus-key")
    with patch(
        "app.services.rag.retriever.Pinecone",
        side_effect=ConnectionError("Name or service not known"),
    ):
        services = build_services(settings)

    try:
        assert services.retriever.available is False
        assert await services.retriever.search([0.1] * 8) == []
    finally:
        await services.aclose()


@pytest.mark.asyncio
async def test_app_starts_when_index_lookup_fails():
    settings = make_settings(pinecone_api_key="pc-bogus-key")
    pinecone = MagicMock()
    pinecone.return_value.Index.side_effect = ConnectionError("Name or service not known")

    with patch("app.main.get_settings", return_value=settings), patch(
        "app.services.rag.retriever.Pinecone", pinecone
    ):
        async with lifespan(app):
            assert app.state.services.retriever.available is False

    del app.state.services


def test_pinecone_host_skips_index_lookup():
    settings = make_settings(pinecone_api_key="pc-key", pinecone_host="koval-abc.svc.pinecone.io")
    with patch("app.services.rag.retriever.Pinecone") as pinecone:
        index = create_pinecone_index(settings)

    pinecone.return_value.Index.assert_called_once_with(host="koval-abc.svc.pinecone.io")
    assert index is pinecone.return_value.Index.return_value


@pytest.mark.asyncio
async def test_missing_openai_key_still_starts(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    settings = make_settings(openai_api_key="")

    assert create_openai_embeddings(settings) is None

    services = build_services(settings)
    try:
        with pytest.raises(EmbeddingError):
            await services.pipeline.embedder.embed("What is a safe ascent rate?")
    finally:
        await services.aclose()
