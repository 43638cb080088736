"""
Knowledge Base Ingestion Script

Loads Daniel Koval's methodology documents (Markdown, TXT, PDF, DOCX) from
the knowledge_docs/ directory, splits them into chunks, embeds them using
OpenAI, and upserts them into the Pinecone index.

How it works:
1. LOAD   – LangChain document loaders read raw files into Document objects
2. TAG    – Metadata (category, source_file, approvedBy) from folder/filename
3. SPLIT  – RecursiveCharacterTextSplitter breaks docs into ~500-char chunks
4. EMBED  – OpenAI text-embedding-3-small converts each chunk to a vector
5. STORE  – Vectors + text + metadata are upserted into Pinecone in batches

Every chunk is tagged approvedBy=<KNOWLEDGE_APPROVED_BY> so the chat
retriever's metadata filter picks it up.

Usage:
    cd backend
    python -m app.services.rag.ingest
"""

import os
import re
import sys
from pathlib import Path

from langchain_community.document_loaders import (
    Docx2txtLoader,
    PyMuPDFLoader,
    TextLoader,
)
from langchain_text_splitters import RecursiveCharacterTextSplitter

from app.core.config import Settings, get_settings
from app.services.rag.embeddings import create_openai_embeddings
from app.services.rag.retriever import create_pinecone_index


UPSERT_BATCH_SIZE = 100


class IngestionError(Exception):
    """Raised when the ingestion pipeline cannot run to completion."""


# ── Metadata Extraction ──────────────────────────────────────────────────────

def extract_metadata_from_path(file_path: str, approved_by: str) -> dict:
    """
    Extract category metadata from the file's directory and name.

    For example:
        knowledge_docs/safety/4_Rules_of_Direct_Supervision.md
        → category="safety", source_file="4_Rules_of_Direct_Supervision.md"
    """
    p = Path(file_path)
    folder = p.parent.name

    category = folder.lower() if folder and folder != "knowledge_docs" else "general"

    return {
        "category": category,
        "source_file": p.name,
        "approvedBy": approved_by,
    }


def chunk_id(source_file: str, index: int) -> str:
    """Stable vector id so re-ingesting a file overwrites its chunks."""
    stem = re.sub(r"[^A-Za-z0-9_-]+", "-", Path(source_file).stem).strip("-").lower()
    return f"{stem or 'doc'}-{index:04d}"


# ── Document Loading ─────────────────────────────────────────────────────────

def load_documents(docs_dir: str, approved_by: str) -> list:
    """
    Walk the knowledge_docs directory and load all supported files.

    Each loader returns a list of Document objects with .page_content (text)
    and .metadata (source path, page number, etc).
    """
    documents = []
    docs_path = Path(docs_dir)

    if not docs_path.exists():
        print(f"[Ingest] Directory not found: {docs_dir}")
        return documents

    for file_path in sorted(docs_path.rglob("*")):
        suffix = file_path.suffix.lower()
        if suffix in (".md", ".txt"):
            print(f"[Ingest] Loading TEXT: {file_path.name}")
            loader = TextLoader(str(file_path), encoding="utf-8")
        elif suffix == ".docx":
            print(f"[Ingest] Loading DOCX: {file_path.name}")
            loader = Docx2txtLoader(str(file_path))
        elif suffix == ".pdf":
            print(f"[Ingest] Loading PDF:  {file_path.name}")
            loader = PyMuPDFLoader(str(file_path))
        else:
            continue

        try:
            docs = loader.load()
            file_meta = extract_metadata_from_path(str(file_path), approved_by)
            for doc in docs:
                doc.metadata.update(file_meta)
            documents.extend(docs)
            print(f"  → {len(docs)} page(s) loaded")
        except Exception as e:
            print(f"  → ERROR loading {file_path.name}: {e}")

    return documents


# ── Chunking ─────────────────────────────────────────────────────────────────

def split_documents(documents: list) -> list:
    """
    Split documents into ~500-char chunks with 100 chars of overlap.

    Paragraph boundaries are preferred, then lines, sentences and words,
    so a safety rule is rarely cut in half.
    """
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=500,
        chunk_overlap=100,
        separators=["\n\n", "\n", ". ", " ", ""],
        length_function=len,
    )
    return splitter.split_documents(documents)


# ── Embedding & Storage ──────────────────────────────────────────────────────

def build_vectors(chunks: list, embeddings: list[list[float]]) -> list[dict]:
    """Pair each chunk with its embedding in Pinecone upsert format."""
    counters: dict[str, int] = {}
    vectors = []
    for chunk, values in zip(chunks, embeddings):
        source = chunk.metadata.get("source_file", "doc")
        n = counters.get(source, 0)
        counters[source] = n + 1
        vectors.append(
            {
                "id": chunk_id(source, n),
                "values": values,
                "metadata": {
                    "text": chunk.page_content,
                    "category": chunk.metadata.get("category", "general"),
                    "source_file": source,
                    "approvedBy": chunk.metadata.get("approvedBy", ""),
                },
            }
        )
    return vectors


def upsert_chunks(chunks: list, settings: Settings) -> int:
    """Embed chunks and upsert them into Pinecone. Returns the number stored."""
    index = create_pinecone_index(settings)
    if index is None:
        raise IngestionError("PINECONE_API_KEY is not set. Cannot store vectors.")

    print(f"\n[Ingest] Creating embeddings with OpenAI {settings.openai_embedding_model}...")
    embedder = create_openai_embeddings(settings)
    if embedder is None:
        raise IngestionError("OpenAI embeddings client could not be created.")
    embeddings = embedder.embed_documents([c.page_content for c in chunks])

    vectors = build_vectors(chunks, embeddings)
    print(f"[Ingest] Upserting {len(vectors)} vectors into Pinecone index {settings.pinecone_index}...")
    for start in range(0, len(vectors), UPSERT_BATCH_SIZE):
        index.upsert(vectors=vectors[start:start + UPSERT_BATCH_SIZE])

    return len(vectors)


# ── Main ─────────────────────────────────────────────────────────────────────

def run_ingestion(docs_dir: str | None = None, settings: Settings | None = None) -> int:
    """Run the full ingestion pipeline. Returns the number of chunks stored."""
    settings = settings or get_settings()
    docs_dir = docs_dir or settings.knowledge_docs_dir

    if not settings.openai_api_key:
        raise IngestionError("OPENAI_API_KEY is not set. Cannot create embeddings.")

    print("=" * 60)
    print("Koval Knowledge Base Ingestion Pipeline")
    print("=" * 60)
    print(f"  Documents dir: {os.path.abspath(docs_dir)}")
    print(f"  Pinecone index: {settings.pinecone_index}")
    print(f"  Approved by:   {settings.knowledge_approved_by}")
    print()

    print("[Step 1] Loading knowledge documents...")
    documents = load_documents(docs_dir, settings.knowledge_approved_by)
    if not documents:
        raise IngestionError(f"No documents found in {docs_dir}")
    print(f"\n  Total pages loaded: {len(documents)}")

    print("\n[Step 2] Splitting into chunks (size=500, overlap=100)...")
    chunks = split_documents(documents)
    print(f"  Total chunks created: {len(chunks)}")

    categories = set(c.metadata.get("category", "?") for c in chunks)
    print(f"  Categories found: {', '.join(sorted(categories))}")

    print("\n[Step 3] Embedding and storing in Pinecone...")
    count = upsert_chunks(chunks, settings)

    print(f"\n{'=' * 60}")
    print(f"Ingestion complete! {count} chunks stored in Pinecone.")
    print(f"{'=' * 60}")
    return count


def main() -> None:
    try:
        run_ingestion()
    except IngestionError as e:
        print(f"[Ingest] ERROR: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
