"""
Process-wide client handles.

:class:`PipelineResources` bundles the chat model, the embedding model, the
vector store and the web searcher.  It is built once at startup and passed
by reference into :func:`~rust_coder_rag_assistant.orchestrator.build_graph`
and the write-path helpers.  Nothing in the pipeline mutates it, so it can
be shared by any number of concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from langchain_core.embeddings import Embeddings
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from .app_config import Settings, settings as default_settings
from .embeddings import build_embeddings
from .vector_store import VectorStore
from .web_search import WebSearcher


@dataclass(frozen=True)
class PipelineResources:
    """Shared, read-only handles used by every pipeline run.

    Attributes
    ----------
    settings : Settings
        Configuration for this process.
    planner_llm : BaseChatModel
        Chat model for the dependency planning pass.
    writer_llm : BaseChatModel
        Chat model for the code synthesis pass.
    embeddings : Embeddings
        Embedding model shared by retrieval and the write paths.
    vector_store : VectorStore
        Knowledge-base and approved-solutions collections.
    web_searcher : WebSearcher
        Search+scrape helper shared by retrieval and research.
    """

    settings: Settings
    planner_llm: BaseChatModel
    writer_llm: BaseChatModel
    embeddings: Embeddings
    vector_store: VectorStore
    web_searcher: WebSearcher

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "PipelineResources":
        """Construct every client described by ``settings``.

        The vector store collections are loaded (or created empty) here so
        that the first request does not pay for it.
        """
        settings = settings or default_settings
        if not settings.openai_api_key:
            raise RuntimeError(
                "OPENAI_API_KEY is not set. Provide an API key via the environment or settings."
            )

        embeddings = build_embeddings(settings)
        vector_store = VectorStore(
            settings.vectorstore_path,
            embeddings,
            settings.embedding_dimensions,
        )
        vector_store.ensure_collections()

        return cls(
            settings=settings,
            planner_llm=ChatOpenAI(model=settings.planner_model, api_key=settings.openai_api_key),
            writer_llm=ChatOpenAI(model=settings.code_writer_model, api_key=settings.openai_api_key),
            embeddings=embeddings,
            vector_store=vector_store,
            web_searcher=WebSearcher(settings),
        )
