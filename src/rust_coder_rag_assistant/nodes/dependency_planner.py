"""
Node: Dependency Planner.

First LLM pass.  Given the user's query and the retrieved context, the
planner decides which external crates the program will need so that their
current APIs can be researched before any code is written.

The model is asked for a JSON object of the form
``{"dependencies": ["crate", ...]}``.  Conversational text around the
object is tolerated; anything else fails with
:class:`~rust_coder_rag_assistant.errors.LlmProtocolError`.
"""

from __future__ import annotations

from typing import Any, Dict

from langchain_core.language_models import BaseChatModel

from ..app_config import Settings
from ..extractors import DependencyPlan, message_text, parse_model_reply
from ..models import ContextBundle
from ..states import RustCoderState
from ..timing_utils import time_node


PLANNER_SYSTEM_PROMPT = """You are an expert Rust architect. Your job is to decide which external crates (published on crates.io) a program needs in order to answer the user's request.

RULES:
1. List only crates that are NOT part of the Rust standard library.
2. Use the exact crate names as published on crates.io (e.g., `serde_json`, `reqwest`, `linfa-trees`).
3. If the standard library is enough, return an empty list.
4. Do not write any code.

Respond with a single JSON object and nothing else, shaped exactly like:
{"dependencies": ["crate_name", "another_crate"]}
"""


def build_planner_prompt(query: str, context: ContextBundle) -> str:
    context_block = context.render() or "(No additional context retrieved)"
    return (
        f"CONTEXT:\n{context_block}\n\n---\n\n"
        f"TASK: List the external crates needed to answer the following query:\n{query}"
    )


class DependencyPlanner:
    """Ask the chat model for the crates a program will need."""

    def __init__(self, llm: BaseChatModel, settings: Settings) -> None:
        self.llm = llm
        self.settings = settings

    async def plan(self, query: str, context: ContextBundle) -> DependencyPlan:
        """Run the planning pass.

        Parameters
        ----------
        query : str
            The user's request.
        context : ContextBundle
            Retrieved context.  May be empty.

        Returns
        -------
        DependencyPlan
            Deduplicated crate names.

        Raises
        ------
        LlmProtocolError
            If the reply cannot be parsed into a :class:`DependencyPlan`.
        """
        messages = [
            {"role": "system", "content": PLANNER_SYSTEM_PROMPT},
            {"role": "user", "content": build_planner_prompt(query, context)},
        ]
        response = await self.llm.ainvoke(messages)
        raw = message_text(response)

        if self.settings.debug:
            print("\n[DEPENDENCY PLANNER] Raw reply:")
            print(raw)

        return parse_model_reply(raw, DependencyPlan)

    @time_node("Dependency Planner")
    async def plan_dependencies(self, state: RustCoderState) -> Dict[str, Any]:
        """Plan dependencies for ``state["query"]``.

        Returns
        -------
        Dict[str, Any]
            ``{"plan": DependencyPlan}``
        """
        query = state.get("query", "")
        context = state.get("context_bundle") or ContextBundle()

        if not self.settings.debug:
            print("Planning crate dependencies...")

        plan = await self.plan(query, context)

        if self.settings.debug:
            print(f"[DEPENDENCY PLANNER] Planned crates: {plan.dependencies or '(none)'}")

        return {"plan": plan}
