"""Node: Render the final user-facing response."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..extractors import GeneratedArtifact
from ..sandbox import BuildOutcome
from ..states import RustCoderState


NO_CODE_MESSAGE = "LLM failed to return a valid code block."


def format_response(artifact: Optional[GeneratedArtifact], outcome: Optional[BuildOutcome]) -> str:
    """Render the banner plus code (on success) or diagnostics (on failure)."""
    if artifact is None or artifact.is_empty or outcome is None:
        return NO_CODE_MESSAGE
    if outcome.success:
        return f"OK. AI-generated code compiled successfully.\n---\n{artifact.code}"
    return f"FAIL. AI-generated code failed to compile.\n---\nErrors:\n{outcome.diagnostics}"


class ResultFormatter:
    """Terminal node of the pipeline."""

    @staticmethod
    def format_result(state: RustCoderState) -> Dict[str, Any]:
        return {"response": format_response(state.get("artifact"), state.get("outcome"))}
