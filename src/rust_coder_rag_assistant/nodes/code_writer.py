"""
Node: Code writer agent.

Second LLM pass.  The writer receives the user's query, the retrieved
context and the research dossier, and returns a complete ``main.rs``
together with the crates (and features) it needs.

The reply must contain a JSON object shaped as::

    {"dependencies": [{"name": "crate", "features": ["feat"]}], "code": "fn main() { ... }"}

A markdown fence around the ``code`` string is removed.  An empty ``code``
string is a valid reply; the orchestrator then skips the build.
"""

from __future__ import annotations

from typing import Any, Dict

from langchain_core.language_models import BaseChatModel

from ..app_config import Settings
from ..extractors import GeneratedArtifact, message_text, parse_model_reply
from ..models import ContextBundle, ResearchDossier
from ..states import RustCoderState
from ..timing_utils import time_node


CODE_WRITER_SYSTEM_PROMPT = """You are an expert Rust programmer. Your task is to answer the user's query with a single, complete and runnable Rust program.

IMPORTANT RULES:
1. You MUST use fully qualified names for all types, functions and modules (e.g., `std::collections::HashMap`, `linfa_trees::DecisionTree`).
2. Do NOT write glob or grouped `use` statements like `use linfa::prelude::*;` or `use linfa_trees::{DecisionTree};`.
3. When crate research is provided, use the APIs it describes. It reflects the latest published versions of those crates.
4. The program must be self-contained within a `main` function in a single `src/main.rs` file.
5. List every external crate the code uses, with the Cargo features it needs.

Respond with a single JSON object and nothing else, shaped exactly like:
{"dependencies": [{"name": "crate_name", "features": ["feature"]}], "code": "fn main() { ... }"}
The "code" value is the raw contents of src/main.rs, without markdown backticks.
Always include "dependencies"; use [] when the program needs no external crates.
"""


def build_code_writer_prompt(query: str, context: ContextBundle, dossier: ResearchDossier) -> str:
    context_block = context.render() or "(No additional context retrieved)"
    research_block = dossier.render() or "(No crate research needed)"
    return (
        f"CONTEXT:\n{context_block}\n\n---\n\n"
        f"CRATE RESEARCH:\n{research_block}\n\n---\n\n"
        f"TASK: Based on the provided context and research, answer the following query:\n{query}"
    )


class CodeWriter:
    """Generate Rust source and its manifest entries."""

    def __init__(self, llm: BaseChatModel, settings: Settings) -> None:
        self.llm = llm
        self.settings = settings

    async def synthesize(
        self,
        query: str,
        context: ContextBundle,
        dossier: ResearchDossier,
    ) -> GeneratedArtifact:
        """Run the synthesis pass.

        Parameters
        ----------
        query : str
            The user's request.
        context : ContextBundle
            Retrieved context.
        dossier : ResearchDossier
            Per-crate research.  Empty when no crates were planned.

        Returns
        -------
        GeneratedArtifact
            Source code and dependencies.  ``code`` may be empty.

        Raises
        ------
        LlmProtocolError
            If the reply cannot be parsed into a :class:`GeneratedArtifact`.
        """
        messages = [
            {"role": "system", "content": CODE_WRITER_SYSTEM_PROMPT},
            {"role": "user", "content": build_code_writer_prompt(query, context, dossier)},
        ]
        response = await self.llm.ainvoke(messages)
        raw = message_text(response)

        if self.settings.debug:
            print("\n" + "="*80)
            print("DEBUG: CODE WRITER RAW REPLY")
            print("="*80)
            print(raw)
            print("="*80 + "\n")

        return parse_model_reply(raw, GeneratedArtifact)

    @time_node("Code Writer Agent")
    async def write_code(self, state: RustCoderState) -> Dict[str, Any]:
        """Generate the program for ``state["query"]``.

        Returns
        -------
        Dict[str, Any]
            ``{"artifact": GeneratedArtifact}``
        """
        query = state.get("query", "")
        context = state.get("context_bundle") or ContextBundle()
        dossier = state.get("dossier") or ResearchDossier()

        if self.settings.debug:
            print(
                f"\n[CODE WRITER START] context sections: {len(context.sections)}, "
                f"researched crates: {len(dossier.entries)}"
            )
        else:
            print("Writing code...")

        artifact = await self.synthesize(query, context, dossier)
        return {"artifact": artifact}
