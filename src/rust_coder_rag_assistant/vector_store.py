"""
FAISS-backed vector store with two logical collections.

``knowledge_base``
    General ingested text chunks.  Payload fields: ``text`` (older stores
    may use ``chunk``) and optionally ``source``.

``approved_solutions``
    Solutions a user upvoted.  Payload fields: ``query`` and ``code``.

Both collections live under one directory (``settings.vectorstore_path``),
one FAISS index per sub-directory, and use cosine similarity: vectors are
L2-normalised and compared with inner product.  Callers pass precomputed
vectors, so a single query embedding can be reused for both collections.

FAISS is not safe for concurrent writes, so every operation runs under a
lock.  Operations are synchronous; async callers dispatch them with
:func:`asyncio.to_thread`.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Tuple

import faiss
from langchain_community.docstore.in_memory import InMemoryDocstore
from langchain_community.vectorstores import FAISS
from langchain_community.vectorstores.utils import DistanceStrategy
from langchain_core.embeddings import Embeddings

from .errors import VectorStoreError


KNOWLEDGE_BASE_COLLECTION = "knowledge_base"
APPROVED_SOLUTIONS_COLLECTION = "approved_solutions"
COLLECTIONS = (KNOWLEDGE_BASE_COLLECTION, APPROVED_SOLUTIONS_COLLECTION)

SearchHit = Tuple[Dict[str, Any], float]


class VectorStore:
    """Two cosine-similarity FAISS collections persisted under one directory.

    Parameters
    ----------
    path : str or Path
        Root directory of the store.  Each collection is saved in its own
        sub-directory.
    embeddings : Embeddings
        Embedding model; FAISS requires one even though searches and
        upserts here always receive precomputed vectors.
    dimensions : int
        Vector dimensionality.  Vectors of any other length are rejected.
    """

    def __init__(self, path: str | Path, embeddings: Embeddings, dimensions: int) -> None:
        self.path = Path(path)
        self.embeddings = embeddings
        self.dimensions = dimensions
        self._stores: Dict[str, FAISS] = {}
        self._lock = threading.RLock()

    def ensure_collections(self) -> None:
        """Load every collection from disk, creating missing ones empty."""
        with self._lock:
            for name in COLLECTIONS:
                if name in self._stores:
                    continue
                collection_dir = self.path / name
                if (collection_dir / "index.faiss").exists():
                    store = FAISS.load_local(
                        str(collection_dir),
                        self.embeddings,
                        allow_dangerous_deserialization=True,
                        normalize_L2=True,
                        distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
                    )
                    if store.index.d != self.dimensions:
                        raise VectorStoreError(
                            f"Collection '{name}' has dimension {store.index.d}, "
                            f"expected {self.dimensions}"
                        )
                else:
                    store = self._empty_store()
                self._stores[name] = store

    def _empty_store(self) -> FAISS:
        return FAISS(
            embedding_function=self.embeddings,
            index=faiss.IndexFlatIP(self.dimensions),
            docstore=InMemoryDocstore(),
            index_to_docstore_id={},
            normalize_L2=True,
            distance_strategy=DistanceStrategy.MAX_INNER_PRODUCT,
        )

    def _collection(self, name: str) -> FAISS:
        if name not in COLLECTIONS:
            raise VectorStoreError(f"Unknown collection '{name}'")
        if name not in self._stores:
            self.ensure_collections()
        return self._stores[name]

    def _check_vector(self, vector: List[float]) -> None:
        if len(vector) != self.dimensions:
            raise VectorStoreError(
                f"Vector has dimension {len(vector)}, store expects {self.dimensions}"
            )

    def count(self, collection: str) -> int:
        """Number of points stored in ``collection``."""
        with self._lock:
            return self._collection(collection).index.ntotal

    def search(self, collection: str, vector: List[float], top_k: int) -> List[SearchHit]:
        """Return up to ``top_k`` ``(payload, score)`` pairs, best first."""
        self._check_vector(vector)
        with self._lock:
            store = self._collection(collection)
            if store.index.ntotal == 0 or top_k <= 0:
                return []
            results = store.similarity_search_with_score_by_vector(list(vector), k=top_k)
        return [(dict(doc.metadata), float(score)) for doc, score in results]

    def upsert(
        self,
        collection: str,
        point_id: str,
        vector: List[float],
        payload: Mapping[str, Any],
    ) -> None:
        """Insert a point, replacing any existing point with the same id."""
        self._check_vector(vector)
        text = str(payload.get("text") or payload.get("chunk") or payload.get("code") or "")
        with self._lock:
            store = self._collection(collection)
            if point_id in store.index_to_docstore_id.values():
                store.delete([point_id])
            store.add_embeddings(
                text_embeddings=[(text, list(vector))],
                metadatas=[dict(payload)],
                ids=[point_id],
            )

    def save(self) -> None:
        """Persist every loaded collection to disk."""
        with self._lock:
            for name, store in self._stores.items():
                collection_dir = self.path / name
                collection_dir.mkdir(parents=True, exist_ok=True)
                store.save_local(str(collection_dir))
