"""
Node: Retrieve context for the user's query.

Three independent lookups run concurrently:

* a live web search whose top results are scraped,
* a similarity search over the ``knowledge_base`` collection, and
* a similarity search over the ``approved_solutions`` collection.

The two vector searches share one embedding of the query, computed once
on a worker thread.  Each lookup fails on its own: a failing lookup simply
contributes nothing, and if all three fail the bundle is empty.  Context is
advisory, so retrieval never fails the request.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from ..embeddings import embed_query
from ..models import ContextBundle, ContextSection, SECTION_ORDER
from ..resources import PipelineResources
from ..states import RustCoderState
from ..timing_utils import time_node
from ..vector_store import APPROVED_SOLUTIONS_COLLECTION, KNOWLEDGE_BASE_COLLECTION


LOOKUP_NAMES = ("web search", "knowledge base", "approved solutions")


def golden_example_text(past_query: str, code: str) -> str:
    """Format an approved solution as a golden example for the prompt."""
    return (
        f"Previously approved solution for a similar query ('{past_query}'):\n"
        f"```rust\n{code}\n```"
    )


class ContextRetriever:
    """Build a :class:`ContextBundle` from the web and both vector collections."""

    def __init__(self, resources: PipelineResources) -> None:
        self.resources = resources
        self.settings = resources.settings

    async def _web_lookup(self, query: str) -> List[ContextSection]:
        text = await self.resources.web_searcher.search_and_scrape(query)
        if not text.strip():
            return []
        return [ContextSection(label="web", text=text, source=query)]

    async def _knowledge_lookup(self, embedding: "asyncio.Future[List[float]]") -> List[ContextSection]:
        vector = await embedding
        hits = await asyncio.to_thread(
            self.resources.vector_store.search,
            KNOWLEDGE_BASE_COLLECTION,
            vector,
            self.settings.knowledge_top_k,
        )
        sections: List[ContextSection] = []
        for payload, _score in hits:
            text = payload.get("text") or payload.get("chunk")
            if text:
                sections.append(
                    ContextSection(label="documentation", text=str(text), source=payload.get("source"))
                )
        return sections

    async def _solutions_lookup(self, embedding: "asyncio.Future[List[float]]") -> List[ContextSection]:
        vector = await embedding
        hits = await asyncio.to_thread(
            self.resources.vector_store.search,
            APPROVED_SOLUTIONS_COLLECTION,
            vector,
            self.settings.solutions_top_k,
        )
        sections: List[ContextSection] = []
        for payload, _score in hits:
            code = payload.get("code")
            past_query = payload.get("query")
            if code and past_query:
                sections.append(
                    ContextSection(
                        label="golden-example",
                        text=golden_example_text(str(past_query), str(code)),
                        source=str(past_query),
                    )
                )
        return sections

    async def retrieve(self, query: str) -> ContextBundle:
        """Run all lookups concurrently and merge whatever succeeded.

        Parameters
        ----------
        query : str
            The user's request.

        Returns
        -------
        ContextBundle
            Sections ordered web, documentation, golden example.  Empty if
            every lookup failed.
        """
        embedding = asyncio.ensure_future(embed_query(self.resources.embeddings, query))
        try:
            results = await asyncio.gather(
                self._web_lookup(query),
                self._knowledge_lookup(embedding),
                self._solutions_lookup(embedding),
                return_exceptions=True,
            )
        finally:
            if not embedding.done():
                embedding.cancel()

        sections: List[ContextSection] = []
        for name, result in zip(LOOKUP_NAMES, results):
            if isinstance(result, Exception):
                if self.settings.debug:
                    print(f"[RETRIEVER] {name} lookup failed: {result}")
                continue
            if isinstance(result, BaseException):
                raise result
            sections.extend(result)

        sections.sort(key=lambda section: SECTION_ORDER.index(section.label))
        return ContextBundle(sections=sections)

    @time_node("Retriever Agent")
    async def retrieve_context(self, state: RustCoderState) -> Dict[str, Any]:
        """Retrieve context for ``state["query"]``.

        Returns
        -------
        Dict[str, Any]
            ``{"context_bundle": ContextBundle}``
        """
        query = state.get("query", "")

        if not self.settings.debug:
            print("Gathering context from the web and the knowledge base...")

        bundle = await self.retrieve(query)

        if self.settings.debug:
            print("\n" + "="*80)
            print("DEBUG: RETRIEVED CONTEXT")
            print("="*80)
            for label in SECTION_ORDER:
                print(f"{label}: {len(bundle.by_label(label))} section(s)")
            print("="*80 + "\n")

        return {"context_bundle": bundle}
