"""
Context and research containers passed between pipeline stages.

:class:`ContextBundle` is built once per request by the retriever and
rendered into the prompts of both LLM passes.  :class:`ResearchDossier` is
built by the dependency researcher and rendered into the code writer's
prompt.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


SectionLabel = Literal["web", "documentation", "golden-example"]

SECTION_ORDER: List[SectionLabel] = ["web", "documentation", "golden-example"]
SECTION_TITLES: Dict[str, str] = {
    "web": "Live Web Context",
    "documentation": "Relevant Documentation",
    "golden-example": "Golden Example",
}


class ContextSection(BaseModel):
    """One labelled piece of context with its provenance."""

    label: SectionLabel
    text: str
    source: Optional[str] = Field(
        default=None,
        description="Search query, document source or past query this text came from.",
    )


class ContextBundle(BaseModel):
    """Ordered context sections for one request."""

    sections: List[ContextSection] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sections

    def by_label(self, label: SectionLabel) -> List[ContextSection]:
        return [section for section in self.sections if section.label == label]

    def render(self) -> str:
        """Render the prompt text, grouped as web, documentation, golden example."""
        blocks: List[str] = []
        for label in SECTION_ORDER:
            texts = [section.text for section in self.by_label(label) if section.text.strip()]
            if texts:
                blocks.append(f"{SECTION_TITLES[label]}:\n" + "\n---\n".join(texts))
        return "\n\n".join(blocks)


class ResearchDossier(BaseModel):
    """Research text per crate, in plan order.  Entries are only appended."""

    entries: Dict[str, str] = Field(default_factory=dict)

    def add(self, dependency: str, text: str) -> None:
        if dependency in self.entries:
            raise ValueError(f"Research for '{dependency}' was already recorded")
        self.entries[dependency] = text

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def render(self) -> str:
        return "".join(
            f"\n--- Research for crate '{name}': ---\n{text}\n"
            for name, text in self.entries.items()
        )
