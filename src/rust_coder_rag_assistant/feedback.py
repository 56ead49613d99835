"""
User feedback on generated solutions.

An upvoted solution is stored in the ``approved_solutions`` collection so
that later, similar queries receive it as a golden example.  The query and
the code are embedded together so the vector captures their relationship.
Downvotes are accepted and ignored.
"""

from __future__ import annotations

import asyncio
import uuid

from .embeddings import embed_texts
from .resources import PipelineResources
from .vector_store import APPROVED_SOLUTIONS_COLLECTION


def solution_text(query: str, code: str) -> str:
    return f"Query: {query}\n---\nCode:\n{code}"


async def process_upvoted_solution(resources: PipelineResources, query: str, code: str) -> str:
    """Store ``code`` as an approved answer to ``query``.

    Returns
    -------
    str
        Id of the stored point.

    Raises
    ------
    ValueError
        If ``query`` or ``code`` is blank.
    """
    if not query.strip() or not code.strip():
        raise ValueError("Both the query and the code are required to store a solution")

    [vector] = await embed_texts(resources.embeddings, [solution_text(query, code)])
    point_id = str(uuid.uuid4())
    await asyncio.to_thread(
        resources.vector_store.upsert,
        APPROVED_SOLUTIONS_COLLECTION,
        point_id,
        vector,
        {"query": query, "code": code},
    )
    await asyncio.to_thread(resources.vector_store.save)

    if resources.settings.debug:
        print(f"[FEEDBACK] Stored approved solution {point_id}")
    return point_id


async def process_feedback(resources: PipelineResources, query: str, code: str, upvote: bool) -> bool:
    """Handle a vote.  Returns whether anything was stored."""
    if not upvote:
        return False
    await process_upvoted_solution(resources, query, code)
    return True
