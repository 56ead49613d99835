"""
The ``rust_coder_rag_assistant`` package turns a natural-language request
into a Rust program that has been verified to compile.  A LangGraph state
machine orchestrates a sequence of nodes that each perform a single
function in the overall pipeline:

* The **ContextRetriever** concurrently searches the web and two FAISS
  collections (general Rust knowledge and previously approved solutions).
  A failing lookup only degrades the context.
* The **DependencyPlanner** asks a language model which external crates
  the program will need.
* The **DependencyResearcher** searches the web for the latest API of each
  planned crate, one crate at a time.
* The **CodeWriter** asks a language model for a complete ``main.rs`` and
  its manifest entries, given the context and the research.
* The **BuildValidator** compiles the result with ``cargo`` in a
  throwaway directory that is always removed afterwards.
* The **ResultFormatter** renders an ``OK`` or ``FAIL`` response.

The root of this package exposes:

``build_graph(resources)``
    Construct the LangGraph state machine for the workflow.

``process_query(query, resources)``
    Await the pipeline for one query and return the formatted response.

``run_from_text(query)``
    Synchronous helper for command-line interfaces and notebooks.  It also
    writes the generated project to disk.

See the module docstrings and individual classes for more details.
"""

from .orchestrator import build_graph, process_query, run_from_text  # noqa: F401
from .resources import PipelineResources  # noqa: F401

__all__ = ["build_graph", "process_query", "run_from_text", "PipelineResources"]
