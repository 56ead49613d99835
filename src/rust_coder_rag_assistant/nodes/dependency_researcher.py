"""
Node: Dependency Researcher.

For every crate in the plan, in plan order, search the web for
``"<research index> <crate> latest API examples"`` and record the scraped
text in a :class:`~rust_coder_rag_assistant.models.ResearchDossier`.

Lookups run one after another to keep the search rate low.  Unlike
retrieval, research is load-bearing: the first failing lookup aborts the
request and whatever was gathered so far is discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..app_config import Settings
from ..errors import ResearchFailure
from ..extractors import DependencyPlan
from ..models import ResearchDossier
from ..states import RustCoderState
from ..timing_utils import time_node
from ..web_search import WebSearcher


@dataclass
class ResearchResult:
    """Outcome of a research loop.

    Exactly one of ``dossier`` or ``failed_dependency`` is set.
    """

    dossier: Optional[ResearchDossier] = None
    failed_dependency: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.dossier is not None


class DependencyResearcher:
    """Research the current API of each planned crate."""

    def __init__(self, web_searcher: WebSearcher, settings: Settings) -> None:
        self.web_searcher = web_searcher
        self.settings = settings

    def research_query(self, dependency: str) -> str:
        return f"{self.settings.research_index} {dependency} latest API examples"

    async def research(self, plan: DependencyPlan) -> ResearchResult:
        """Research every crate of ``plan`` sequentially.

        An empty plan yields an empty dossier without any network call.
        """
        dossier = ResearchDossier()
        for dependency in plan.dependencies:
            if self.settings.debug:
                print(f"[DEPENDENCY RESEARCHER] Researching '{dependency}'")
            try:
                text = await self.web_searcher.search_and_scrape(self.research_query(dependency))
            except Exception as exc:
                return ResearchResult(failed_dependency=dependency, error=exc)
            dossier.add(dependency, text)
        return ResearchResult(dossier=dossier)

    @time_node("Dependency Researcher")
    async def research_dependencies(self, state: RustCoderState) -> Dict[str, Any]:
        """Research the crates in ``state["plan"]``.

        Returns
        -------
        Dict[str, Any]
            ``{"dossier": ResearchDossier}``

        Raises
        ------
        ResearchFailure
            If any single lookup failed.
        """
        plan = state.get("plan") or DependencyPlan(dependencies=[])

        if not self.settings.debug and plan.dependencies:
            print(f"Researching {len(plan.dependencies)} crate(s)...")

        result = await self.research(plan)
        if not result.ok:
            raise ResearchFailure(result.failed_dependency or "", result.error) from result.error

        return {"dossier": result.dossier}
