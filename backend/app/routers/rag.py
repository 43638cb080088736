"""
RAG Admin Router

Provides endpoints to check the knowledge index and trigger re-ingestion.
"""

import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from app.core.config import Settings
from app.dependencies import get_app_settings, get_retriever
from app.services.rag.ingest import run_ingestion
from app.services.rag.retriever import KnowledgeRetriever

router = APIRouter()


class RAGStatusResponse(BaseModel):
    available: bool
    vector_count: int
    index_name: str
    approved_by: str
    message: str = ""


class IngestResponse(BaseModel):
    status: str
    message: str
    chunk_count: int


Retriever = Annotated[KnowledgeRetriever, Depends(get_retriever)]


@router.get("/status", response_model=RAGStatusResponse)
async def rag_status(retriever: Retriever):
    """Check the status of the Pinecone knowledge index."""
    info = await retriever.status()
    return RAGStatusResponse(**info)


@router.post("/ingest", response_model=IngestResponse)
async def trigger_ingestion(settings: Annotated[Settings, Depends(get_app_settings)]):
    """
    Trigger knowledge document re-ingestion.

    This re-processes all documents in knowledge_docs/ and upserts them
    into the Pinecone index. Useful after adding new methodology files.
    """
    try:
        count = await asyncio.to_thread(run_ingestion, None, settings)
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Ingestion failed: {str(e)}",
        )
    return IngestResponse(
        status="success",
        message=f"Ingestion complete. {count} chunks stored.",
        chunk_count=count,
    )
