"""
Exception types raised by the Rust Coder RAG Assistant.

Only infrastructure and protocol problems are exceptions.  A build that
does not succeed is a normal :class:`~rust_coder_rag_assistant.sandbox.BuildOutcome`,
and a partial retrieval failure only degrades the context.
"""

from __future__ import annotations

from typing import Optional


class RustCoderError(Exception):
    """Base class for all pipeline errors."""


class LlmProtocolError(RustCoderError):
    """The model reply could not be parsed into the expected structure.

    The raw reply is kept on :attr:`raw_text` for diagnosis.
    """

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text

    def __str__(self) -> str:
        base = super().__str__()
        if not self.raw_text:
            return base
        snippet = self.raw_text[:400]
        return f"{base}\nRaw reply (truncated): {snippet}"


class WebSearchError(RustCoderError):
    """The web search step failed (request error or unusable response)."""


class ResearchFailure(RustCoderError):
    """Research for one planned dependency failed, aborting the request."""

    def __init__(self, dependency: str, cause: Optional[BaseException] = None) -> None:
        message = f"Research for crate '{dependency}' failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.dependency = dependency
        self.cause = cause


class SandboxInfrastructureError(RustCoderError):
    """The build sandbox could not be prepared or the build tool not launched."""


class VectorStoreError(RustCoderError):
    """A vector store operation was rejected (unknown collection, bad dimension)."""


__all__ = [
    "RustCoderError",
    "LlmProtocolError",
    "WebSearchError",
    "ResearchFailure",
    "SandboxInfrastructureError",
    "VectorStoreError",
]
