"""
Embedding provider for the Rust Coder RAG Assistant.

Every vector in the system (queries, knowledge-base chunks and approved
solutions) comes from one LangChain :class:`~langchain_core.embeddings.Embeddings`
instance.  Its dimensionality is fixed by configuration and must match the
vector store.

Embedding clients are synchronous and may be CPU-bound (for local models),
so the async helpers dispatch them to a worker thread instead of blocking
the event loop that serves other requests.
"""

from __future__ import annotations

import asyncio
from typing import List, Sequence

from langchain_core.embeddings import Embeddings
from langchain_openai import OpenAIEmbeddings

from .app_config import Settings


def build_embeddings(settings: Settings) -> Embeddings:
    """Create the OpenAI embedding client described by ``settings``."""
    return OpenAIEmbeddings(
        model=settings.embedding_model,
        dimensions=settings.embedding_dimensions,
        api_key=settings.openai_api_key or None,
    )


async def embed_texts(embeddings: Embeddings, texts: Sequence[str]) -> List[List[float]]:
    """Embed ``texts`` on a worker thread, one vector per input, in order."""
    if not texts:
        return []
    vectors = await asyncio.to_thread(embeddings.embed_documents, list(texts))
    if len(vectors) != len(texts):
        raise ValueError(
            f"Embedding provider returned {len(vectors)} vectors for {len(texts)} texts"
        )
    return vectors


async def embed_query(embeddings: Embeddings, text: str) -> List[float]:
    """Embed a single query string on a worker thread."""
    return await asyncio.to_thread(embeddings.embed_query, text)
