"""
Knowledge-base ingestion.

A document is split into overlapping character chunks, embedded in batches
on a worker thread and upserted into the ``knowledge_base`` collection with
a ``{"text", "source"}`` payload.  The collection is saved to disk once
every batch has been written.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from .embeddings import embed_texts
from .resources import PipelineResources
from .vector_store import KNOWLEDGE_BASE_COLLECTION


CHUNK_SIZE = 1000
CHUNK_OVERLAP = 100
BATCH_SIZE = 32


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE, chunk_overlap: int = CHUNK_OVERLAP) -> List[str]:
    """Split ``text`` into trimmed, non-empty chunks."""
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=chunk_overlap,
        length_function=len,
        separators=["\n\n\n", "\n\n", "\n", ". ", " ", ""],
    )
    return [chunk.strip() for chunk in splitter.split_text(text) if chunk.strip()]


async def ingest_document(
    resources: PipelineResources,
    text: str,
    source: Optional[str] = None,
    batch_size: int = BATCH_SIZE,
) -> int:
    """Chunk, embed and store ``text`` in the knowledge base.

    Parameters
    ----------
    resources : PipelineResources
        Provides the embedding model and the vector store.
    text : str
        Raw document text.
    source : str, optional
        Provenance stored with every chunk (file path or URL).
    batch_size : int, optional
        Number of chunks embedded per request.

    Returns
    -------
    int
        Number of chunks written.
    """
    chunks = chunk_text(text)
    debug = resources.settings.debug
    if debug:
        print(f"[INGEST] Document split into {len(chunks)} chunks")

    written = 0
    for start in range(0, len(chunks), batch_size):
        batch = chunks[start:start + batch_size]
        vectors = await embed_texts(resources.embeddings, batch)
        for chunk, vector in zip(batch, vectors):
            payload = {"text": chunk, "source": source or ""}
            await asyncio.to_thread(
                resources.vector_store.upsert,
                KNOWLEDGE_BASE_COLLECTION,
                str(uuid.uuid4()),
                vector,
                payload,
            )
            written += 1
        if debug:
            print(f"[INGEST] Stored batch of {len(batch)} chunks")

    if written:
        await asyncio.to_thread(resources.vector_store.save)
    return written
