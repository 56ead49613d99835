"""
LangGraph orchestration for the Rust Coder RAG Assistant.

The workflow is a straight line with one branch::

    retrieve -> plan_dependencies -> research_dependencies -> write_code
        -> validate_build -> format_response
        (write_code -> format_response when the artifact has no code)

Every node is an async method bound to one shared
:class:`~rust_coder_rag_assistant.resources.PipelineResources`, so the
compiled graph can serve any number of concurrent requests.  Errors raised
by a node (parse failures, research failures, sandbox infrastructure
failures) propagate out of :func:`run_pipeline` unchanged.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Optional

from langgraph.graph import END, START, StateGraph

from .app_config import Settings, settings as default_settings
from .extractors import GeneratedArtifact
from .nodes import (
    BuildValidator,
    CodeWriter,
    ContextRetriever,
    DependencyPlanner,
    DependencyResearcher,
    ResultFormatter,
)
from .resources import PipelineResources
from .sandbox import render_manifest
from .states import RustCoderState


def route_after_code_writer(state: RustCoderState) -> str:
    """Skip the build when the writer produced no code."""
    artifact = state.get("artifact")
    if artifact is None or artifact.is_empty:
        return "format_response"
    return "validate_build"


def build_graph(resources: PipelineResources):
    """Construct and compile the workflow graph.

    Parameters
    ----------
    resources : PipelineResources
        Shared client handles bound into every node.

    Returns
    -------
    CompiledStateGraph
        Ready to be awaited with ``ainvoke({"query": ...})``.
    """
    settings = resources.settings
    retriever = ContextRetriever(resources)
    planner = DependencyPlanner(resources.planner_llm, settings)
    researcher = DependencyResearcher(resources.web_searcher, settings)
    writer = CodeWriter(resources.writer_llm, settings)
    validator = BuildValidator(settings)

    graph = StateGraph(RustCoderState)
    graph.add_node("retrieve", retriever.retrieve_context)
    graph.add_node("plan_dependencies", planner.plan_dependencies)
    graph.add_node("research_dependencies", researcher.research_dependencies)
    graph.add_node("write_code", writer.write_code)
    graph.add_node("validate_build", validator.validate_build)
    graph.add_node("format_response", ResultFormatter.format_result)

    graph.add_edge(START, "retrieve")
    graph.add_edge("retrieve", "plan_dependencies")
    graph.add_edge("plan_dependencies", "research_dependencies")
    graph.add_edge("research_dependencies", "write_code")
    graph.add_conditional_edges(
        "write_code",
        route_after_code_writer,
        {"validate_build": "validate_build", "format_response": "format_response"},
    )
    graph.add_edge("validate_build", "format_response")
    graph.add_edge("format_response", END)

    return graph.compile()


async def run_pipeline(query: str, resources: PipelineResources, graph=None) -> Dict[str, Any]:
    """Run the full workflow for ``query`` and return the final state."""
    graph = graph or build_graph(resources)
    return await graph.ainvoke({"query": query})


async def process_query(query: str, resources: PipelineResources, graph=None) -> str:
    """Submit a query and receive the formatted response.

    Raises
    ------
    RustCoderError
        On parse, research or sandbox infrastructure failures.
    """
    state = await run_pipeline(query, resources, graph)
    return state["response"]


def save_artifact(artifact: GeneratedArtifact, output_dir: str, edition: str = "2024") -> Path:
    """Write ``artifact`` as a cargo project (``Cargo.toml`` + ``src/main.rs``).

    Returns
    -------
    Path
        Path of the written ``main.rs``.
    """
    project_dir = Path(output_dir)
    src_dir = project_dir / "src"
    src_dir.mkdir(parents=True, exist_ok=True)
    (project_dir / "Cargo.toml").write_text(
        render_manifest(artifact.dependencies, edition), encoding="utf-8"
    )
    main_path = src_dir / "main.rs"
    main_path.write_text(artifact.code, encoding="utf-8")
    return main_path


def run_from_text(
    query: str,
    output_dir: Optional[str] = None,
    debug: bool = False,
    settings: Optional[Settings] = None,
    resources: Optional[PipelineResources] = None,
) -> str:
    """Convenience wrapper to run the pipeline from a plain query string.

    Parameters
    ----------
    query : str
        Natural-language description of the program to write.
    output_dir : str, optional
        Directory where the generated project is written.  Defaults to
        ``settings.output_dir``.
    debug : bool, optional
        Enable verbose debug output.
    settings : Settings, optional
        Configuration to use.  Defaults to the global settings.
    resources : PipelineResources, optional
        Pre-built client handles.  Built from ``settings`` when omitted.

    Returns
    -------
    str
        The formatted response.
    """
    settings = resources.settings if resources is not None else (settings or default_settings)
    settings.debug = debug
    resources = resources or PipelineResources.from_settings(settings)

    state = asyncio.run(run_pipeline(query, resources))

    artifact = state.get("artifact")
    if artifact is not None and not artifact.is_empty:
        target = output_dir or settings.output_dir
        main_path = save_artifact(artifact, target, settings.rust_edition)
        if settings.debug:
            print(f"\n[SAVED] {main_path}")
    return state["response"]
