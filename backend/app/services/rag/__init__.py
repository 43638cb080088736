"""
RAG (Retrieval-Augmented Generation) Pipeline

Grounds coaching answers in Daniel Koval's approved methodology by:
1. Ingesting methodology documents into a Pinecone vector index
2. Embedding the diver's question at query time
3. Retrieving the closest approved passages for the prompt
"""

from app.services.rag.embeddings import EmbeddingError, EmbeddingGenerator
from app.services.rag.retriever import KnowledgePassage, KnowledgeRetriever

__all__ = [
    "EmbeddingError",
    "EmbeddingGenerator",
    "KnowledgePassage",
    "KnowledgeRetriever",
]
