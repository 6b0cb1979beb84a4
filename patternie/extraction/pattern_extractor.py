"""Pattern extractors: a dependency pattern plus a way to score what it extracts.

There are four variants, distinguished by their ``kind`` field:

- ``general``: a fixed, match-independent confidence.
- ``specific``: like ``general`` but only for one normalised relation phrase.
- ``lda``: no fixed confidence; each extraction is scored by P(pattern | relation)
  from the pattern/relation distributions.
- ``template``: a fixed confidence and a template that rewrites the relation text.

All variants expose ``pattern``, ``confidence`` (``None`` when scoring depends on
the extraction), ``confidence_of(extraction)`` and ``extract(graph, build, valid)``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, Union

from loguru import logger
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, InstanceOf, TypeAdapter

from patternie.extraction.builder import BuildFn, ValidFn
from patternie.extraction.distributions import PatternDistributions
from patternie.extraction.models import DetailedExtraction
from patternie.extraction.pattern import DependencyPattern
from patternie.graph.dependency_graph import DependencyGraph, DependencyNode

LEMMA_BLACKLIST = frozenset(
    {"for", "in", "than", "up", "as", "to", "at", "on", "by", "with", "from", "be", "like", "of"}
)


def normalize_relation(nodes: Iterable[DependencyNode]) -> str:
    """Relation lemmas with function words removed, in token order."""
    return " ".join(node.lemma for node in sorted(nodes) if node.lemma not in LEMMA_BLACKLIST)


def _coerce_pattern(value: Any) -> Any:
    if isinstance(value, str):
        return DependencyPattern.parse(value)
    return value


PatternField = Annotated[InstanceOf[DependencyPattern], BeforeValidator(_coerce_pattern)]


def _run_pattern(
    extractor: "PatternExtractor",
    graph: DependencyGraph,
    build: BuildFn,
    valid: ValidFn,
) -> List[DetailedExtraction]:
    extractions: List[DetailedExtraction] = []
    for match in extractor.pattern.match(graph):
        if not valid(graph, match):
            continue
        extraction = build(graph, match, extractor)
        if extraction is not None:
            extractions.append(extraction)
    return extractions


class GeneralExtractor(BaseModel):
    """A pattern with a fixed confidence."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["general"] = "general"
    pattern: PatternField
    confidence: float = Field(default=1.0, ge=0.0)

    def confidence_of(self, extraction: DetailedExtraction) -> float:
        return self.confidence

    def extract(self, graph: DependencyGraph, build: BuildFn, valid: ValidFn) -> List[DetailedExtraction]:
        return _run_pattern(self, graph, build, valid)


class SpecificExtractor(BaseModel):
    """A pattern that only yields extractions of one normalised relation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["specific"] = "specific"
    pattern: PatternField
    relation: str
    confidence: float = Field(default=1.0, ge=0.0)

    def confidence_of(self, extraction: DetailedExtraction) -> float:
        return self.confidence

    def extract(self, graph: DependencyGraph, build: BuildFn, valid: ValidFn) -> List[DetailedExtraction]:
        return [
            extraction
            for extraction in _run_pattern(self, graph, build, valid)
            if normalize_relation(extraction.rel_nodes) == self.relation
        ]


class LdaExtractor(BaseModel):
    """A pattern scored per extraction by P(pattern | relation)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["lda"] = "lda"
    pattern: PatternField
    pattern_code: int
    distributions: PatternDistributions

    @property
    def confidence(self) -> Optional[float]:
        return None

    def confidence_of(self, extraction: DetailedExtraction) -> float:
        relation_code = self.distributions.relation_encoding(normalize_relation(extraction.rel_nodes))
        if relation_code is None:
            return 0.0
        return self.distributions.pattern_given_relation(self.pattern_code, relation_code)

    def extract(self, graph: DependencyGraph, build: BuildFn, valid: ValidFn) -> List[DetailedExtraction]:
        return _run_pattern(self, graph, build, valid)


class TemplateExtractor(BaseModel):
    """A pattern whose relation text is rewritten through a ``{rel}`` template."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    kind: Literal["template"] = "template"
    pattern: PatternField
    template: str
    confidence: float = Field(default=1.0, ge=0.0)

    def confidence_of(self, extraction: DetailedExtraction) -> float:
        return self.confidence

    def render(self, rel_text: str) -> str:
        return self.template.replace("{rel}", rel_text)

    def extract(self, graph: DependencyGraph, build: BuildFn, valid: ValidFn) -> List[DetailedExtraction]:
        return [
            extraction.with_relation_text(self.render(extraction.rel_text))
            for extraction in _run_pattern(self, graph, build, valid)
        ]


PatternExtractor = Annotated[
    Union[GeneralExtractor, SpecificExtractor, LdaExtractor, TemplateExtractor],
    Field(discriminator="kind"),
]

_extractor_adapter: TypeAdapter[PatternExtractor] = TypeAdapter(PatternExtractor)


def parse_extractor(data: Dict[str, Any]) -> PatternExtractor:
    """Build the extractor variant named by ``data["kind"]``."""
    return _extractor_adapter.validate_python(data)


# -----------------------
# Loading
# -----------------------


def _read_pattern_file(path: Path, columns: int) -> List[Tuple[List[str], int]]:
    """Read tab separated rows of ``columns`` fields plus an optional trailing count."""
    if not path.exists():
        raise FileNotFoundError(f"Pattern file not found: {path}")

    rows: List[Tuple[List[str], int]] = []
    for line_number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        parts = line.rstrip("\n").split("\t")
        if len(parts) == columns:
            count = 1
        elif len(parts) == columns + 1:
            try:
                count = int(parts[-1])
            except ValueError as exc:
                raise ValueError(f"{path}:{line_number}: count must be an integer") from exc
            parts = parts[:-1]
        else:
            raise ValueError(f"{path}:{line_number}: expected {columns} or {columns + 1} columns")
        rows.append((parts, count))

    # frequent patterns first
    rows.sort(key=lambda row: -row[1])
    return rows


def _relative_confidences(counts: Sequence[int]) -> List[float]:
    highest = max(counts, default=0)
    return [count / highest if highest else 0.0 for count in counts]


def general_extractors_from_file(path: str | Path) -> List[GeneralExtractor]:
    rows = _read_pattern_file(Path(path), columns=1)
    confidences = _relative_confidences([count for _, count in rows])
    return [
        GeneralExtractor(pattern=parts[0], confidence=confidence)
        for (parts, _), confidence in zip(rows, confidences)
    ]


def template_extractors_from_file(path: str | Path) -> List[TemplateExtractor]:
    rows = _read_pattern_file(Path(path), columns=2)
    confidences = _relative_confidences([count for _, count in rows])
    return [
        TemplateExtractor(template=parts[0], pattern=parts[1], confidence=confidence)
        for (parts, _), confidence in zip(rows, confidences)
    ]


def lda_extractors_from_distributions(distributions: PatternDistributions) -> List[LdaExtractor]:
    return [
        LdaExtractor(
            pattern=distributions.pattern_decoding(code),
            pattern_code=code,
            distributions=distributions,
        )
        for code in distributions.pattern_codes
    ]


def general_extractors_from_distributions(distributions: PatternDistributions) -> List[GeneralExtractor]:
    return [
        GeneralExtractor(
            pattern=distributions.pattern_decoding(code),
            confidence=distributions.pattern_confidence(code),
        )
        for code in distributions.pattern_codes
    ]


def specific_extractors_from_distributions(distributions: PatternDistributions) -> List[SpecificExtractor]:
    extractors: List[SpecificExtractor] = []
    for code in distributions.pattern_codes:
        pattern = DependencyPattern.parse(distributions.pattern_decoding(code))
        for relation_code in distributions.relations_for_pattern(code):
            extractors.append(
                SpecificExtractor(
                    pattern=pattern,
                    relation=distributions.relation_decoding(relation_code),
                    confidence=distributions.relation_given_pattern(code, relation_code),
                )
            )
    return extractors


def load_extractors(
    extractor_type: str,
    distributions: Optional[PatternDistributions] = None,
    pattern_file: str | Path | None = None,
) -> List[PatternExtractor]:
    """Create the extractors for ``extractor_type`` from distributions or a pattern file.

    Raises:
        ValueError: If the pattern source required by ``extractor_type`` is missing
    """
    logger.info(f"Reading patterns for the {extractor_type} extractor")

    extractors: List[PatternExtractor]
    if extractor_type == "lda" and distributions is not None:
        extractors = list(lda_extractors_from_distributions(distributions))
    elif extractor_type == "general" and distributions is not None:
        extractors = list(general_extractors_from_distributions(distributions))
    elif extractor_type == "specific" and distributions is not None:
        extractors = list(specific_extractors_from_distributions(distributions))
    elif extractor_type == "template" and distributions is None:
        if pattern_file is None:
            raise ValueError("pattern template file required for the template extractor")
        extractors = list(template_extractors_from_file(pattern_file))
    elif extractor_type == "general":
        if pattern_file is None:
            raise ValueError("pattern file required for the general extractor")
        extractors = list(general_extractors_from_file(pattern_file))
    else:
        raise ValueError(f"invalid parameters for the {extractor_type} extractor")

    logger.info(f"Loaded {len(extractors)} {extractor_type} extractors")
    return extractors
