"""
Node: Build validator.

Compiles the generated artifact in a throwaway cargo project (see
:mod:`rust_coder_rag_assistant.sandbox`).  The orchestrator only routes here
when the artifact has code.
"""

from __future__ import annotations

from typing import Any, Dict

from ..app_config import Settings
from ..extractors import GeneratedArtifact
from ..sandbox import BuildOutcome, validate_artifact
from ..states import RustCoderState
from ..timing_utils import time_node


class BuildValidator:
    """Run the sandbox build for one artifact."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    async def validate(self, artifact: GeneratedArtifact) -> BuildOutcome:
        return await validate_artifact(artifact, self.settings)

    @time_node("Build Validator")
    async def validate_build(self, state: RustCoderState) -> Dict[str, Any]:
        """Build ``state["artifact"]``.

        Returns
        -------
        Dict[str, Any]
            ``{"outcome": BuildOutcome}``
        """
        artifact = state["artifact"]

        if not self.settings.debug:
            print(f"Validating with 'cargo {self.settings.cargo_command}'...")

        outcome = await self.validate(artifact)

        if self.settings.debug:
            status = "succeeded" if outcome.success else "failed"
            print(f"[BUILD VALIDATOR] cargo {self.settings.cargo_command} {status}")
            if outcome.diagnostics:
                print(outcome.diagnostics)

        return {"outcome": outcome}
