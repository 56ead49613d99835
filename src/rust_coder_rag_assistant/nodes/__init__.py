"""
Import convenience for node classes.

This module exposes the nodes used in the Rust Coder RAG Assistant
workflow so that they can be imported from a single place.  When
modifying or extending the pipeline you should add your new nodes
here.
"""

from .retriever import ContextRetriever  # noqa: F401
from .dependency_planner import DependencyPlanner  # noqa: F401
from .dependency_researcher import DependencyResearcher, ResearchResult  # noqa: F401
from .code_writer import CodeWriter  # noqa: F401
from .build_validator import BuildValidator  # noqa: F401
from .result_formatter import ResultFormatter, format_response, NO_CODE_MESSAGE  # noqa: F401

__all__ = [
    "ContextRetriever",
    "DependencyPlanner",
    "DependencyResearcher",
    "ResearchResult",
    "CodeWriter",
    "BuildValidator",
    "ResultFormatter",
    "format_response",
    "NO_CODE_MESSAGE",
]
