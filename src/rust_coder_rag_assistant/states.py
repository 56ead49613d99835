"""
Pipeline state shared by the LangGraph nodes.

Each node reads the keys produced by earlier nodes and returns a dict with
the keys it produces.  Values are never mutated after they are written, so
a later stage cannot change what an earlier stage handed over.
"""

from __future__ import annotations

from typing import TypedDict

from .extractors import DependencyPlan, GeneratedArtifact
from .models import ContextBundle, ResearchDossier
from .sandbox import BuildOutcome


class RustCoderState(TypedDict, total=False):
    """State of one query-processing run.

    Keys
    ----
    query : str
        The user's natural-language request.
    context_bundle : ContextBundle
        Web, documentation and golden-example sections (Retriever).
    plan : DependencyPlan
        Crates expected to be needed (Dependency Planner).
    dossier : ResearchDossier
        Per-crate research text (Dependency Researcher).
    artifact : GeneratedArtifact
        Source code plus manifest entries (Code Writer).
    outcome : BuildOutcome
        Sandbox build verdict (Build Validator).  Absent when the artifact
        has no code.
    response : str
        Final formatted answer (Result Formatter).
    """

    query: str
    context_bundle: ContextBundle
    plan: DependencyPlan
    dossier: ResearchDossier
    artifact: GeneratedArtifact
    outcome: BuildOutcome
    response: str
