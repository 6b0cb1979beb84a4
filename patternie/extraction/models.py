"""Shared data models for extraction modules."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Tuple

from pydantic import BaseModel, ConfigDict

from patternie.extraction.pattern import Match
from patternie.graph.dependency_graph import DependencyNode, nodes_to_string


@dataclass(frozen=True, eq=False)
class DetailedExtraction:
    """An (arg1, rel, arg2) extraction with its node sets and provenance.

    Two extractions are equal when they render the same triple and come from the
    same pattern.
    """

    extractor: Any
    match: Match
    arg1_nodes: Tuple[DependencyNode, ...]
    rel_nodes: Tuple[DependencyNode, ...]
    rel_text: str
    arg2_nodes: Tuple[DependencyNode, ...]

    @property
    def arg1_text(self) -> str:
        return nodes_to_string(self.arg1_nodes)

    @property
    def arg2_text(self) -> str:
        return nodes_to_string(self.arg2_nodes)

    @property
    def pattern(self) -> str:
        return str(self.extractor.pattern)

    def with_relation_text(self, rel_text: str) -> "DetailedExtraction":
        return replace(self, rel_text=rel_text)

    def _key(self) -> Tuple[str, str, str, str]:
        return (self.arg1_text, self.rel_text, self.arg2_text, self.pattern)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DetailedExtraction):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"({self.arg1_text}; {self.rel_text}; {self.arg2_text})"


@dataclass(frozen=True)
class RankedExtraction:
    """A scored extraction. Sorts by confidence descending, then text ascending."""

    confidence: float
    extraction: DetailedExtraction

    def sort_key(self) -> Tuple[float, str]:
        return (-self.confidence, str(self.extraction))

    def __lt__(self, other: "RankedExtraction") -> bool:
        return self.sort_key() < other.sort_key()

    def to_triple(self) -> "ExtractedTriple":
        extraction = self.extraction
        return ExtractedTriple(
            arg1=extraction.arg1_text,
            relation=extraction.rel_text,
            arg2=extraction.arg2_text,
            confidence=self.confidence,
            pattern=extraction.pattern,
            extractor=getattr(extraction.extractor, "kind", "unknown"),
        )


class ExtractedTriple(BaseModel):
    """Flattened, serialisable form of a ranked extraction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    arg1: str
    relation: str
    arg2: str
    confidence: float = 0.0
    pattern: str = ""
    extractor: str = "unknown"
