"""
Structured output parsing for the Rust Coder RAG Assistant.

The language model is treated as a black box that returns free text.  Both
LLM passes ask for a JSON object, but models routinely wrap that object in
conversational text or markdown fences.  Parsing is therefore a strict
two-step process:

1. :func:`extract_json_object` takes the substring from the first ``{`` to
   the last ``}`` of the reply.  If no such span exists, parsing fails.
2. The candidate is parsed with :func:`json.loads` and validated against a
   Pydantic model (:class:`DependencyPlan` or :class:`GeneratedArtifact`).

Any failure raises :class:`~rust_coder_rag_assistant.errors.LlmProtocolError`
carrying the raw reply.  There is no fallback that treats the whole reply
as code, and no retry.
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import LlmProtocolError


ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z0-9_+-]*\s*\n(.*?)\n?\s*```\s*$", re.DOTALL)


class DependencyPlan(BaseModel):
    """Crates the Dependency Planner expects the program to need.

    Names are stripped, blank names are dropped and duplicates are removed
    while keeping the first occurrence, so every name feeds exactly one
    research lookup.  The field itself is required: a reply that names its
    list anything else is a protocol error, not an empty plan.
    """

    dependencies: List[str] = Field(
        ...,
        description="Names of external crates (as published on crates.io) the program needs.",
    )

    @field_validator("dependencies")
    @classmethod
    def _dedupe(cls, value: List[str]) -> List[str]:
        seen: set[str] = set()
        names: List[str] = []
        for raw in value:
            name = raw.strip()
            if name and name not in seen:
                seen.add(name)
                names.append(name)
        return names


class CrateDependency(BaseModel):
    """One ``[dependencies]`` entry of the generated manifest."""

    name: str = Field(description="Crate name as published on crates.io")
    features: List[str] = Field(
        default_factory=list,
        description="Cargo features to enable, written to the manifest verbatim.",
    )

    @field_validator("name")
    @classmethod
    def _non_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("dependency name must not be empty")
        return value


class GeneratedArtifact(BaseModel):
    """The Code Writer's final output: Rust source plus its manifest entries."""

    dependencies: List[CrateDependency] = Field(..., description="Manifest entries; an empty list when no crates are needed.")
    code: str = Field(description="Complete contents of src/main.rs")

    @field_validator("code")
    @classmethod
    def _strip_fences(cls, value: str) -> str:
        return strip_code_fences(value)

    @property
    def is_empty(self) -> bool:
        """Whether there is no program to validate."""
        return not self.code.strip()


def strip_code_fences(code: str) -> str:
    """Remove one markdown fence wrapped around an entire code string."""
    match = _FENCE_RE.match(code)
    if match:
        return match.group(1)
    return code


def extract_json_object(raw: str) -> str:
    """Return the substring between the first ``{`` and the last ``}``.

    Parameters
    ----------
    raw : str
        Unmodified model reply.

    Returns
    -------
    str
        Candidate JSON object text.

    Raises
    ------
    LlmProtocolError
        If the reply contains no ``{`` ... ``}`` span.
    """
    text = raw or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise LlmProtocolError("Model reply does not contain a JSON object", raw_text=text)
    return text[start:end + 1]


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Extract and strictly parse the JSON object embedded in ``raw``."""
    candidate = extract_json_object(raw)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise LlmProtocolError(f"Model reply is not valid JSON: {exc.msg}", raw_text=raw) from exc
    if not isinstance(payload, dict):
        raise LlmProtocolError("Model reply JSON is not an object", raw_text=raw)
    return payload


def parse_model_reply(raw: str, model: Type[ModelT]) -> ModelT:
    """Parse a model reply into ``model``.

    Parameters
    ----------
    raw : str
        Unmodified model reply.
    model : Type[BaseModel]
        Pydantic model describing the expected shape.

    Returns
    -------
    BaseModel
        The validated instance.

    Raises
    ------
    LlmProtocolError
        If extraction, JSON parsing or validation fails.
    """
    payload = parse_json_object(raw)
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise LlmProtocolError(
            f"Model reply does not match the {model.__name__} schema: {exc.error_count()} error(s)",
            raw_text=raw,
        ) from exc


def message_text(message: Any) -> str:
    """Return the text of a chat model response.

    LangChain chat models return an ``AIMessage`` whose ``content`` is either
    a string or a list of content blocks.
    """
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts: List[str] = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        return "".join(parts)
    return str(content)
