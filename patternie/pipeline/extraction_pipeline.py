"""Run a set of pattern extractors over one sentence graph and rank the results.

For each extractor, in order:

1. Skip it when some edge matcher in its pattern cannot match any edge in the graph.
2. Skip it when its fixed confidence is already below the threshold, so the
   matcher never runs.
3. Match, filter matches through ``valid`` and build extractions through ``build``.
4. Score each extraction and drop those below the threshold.

Equal extractions are then reduced to their best-scoring member (unless duplicates
are kept) and everything is sorted by confidence descending, then text ascending.
"""

from __future__ import annotations

from functools import partial
from typing import Dict, List, Optional, Sequence

from loguru import logger

from patternie.extraction.builder import BuildFn, ValidFn, build_extraction, valid_match
from patternie.extraction.models import DetailedExtraction, RankedExtraction
from patternie.extraction.pattern_extractor import PatternExtractor
from patternie.graph.dependency_graph import DependencyGraph
from patternie.utils.config import ExtractorConfig


def possible_extraction(extractor: PatternExtractor, graph: DependencyGraph) -> bool:
    """Cheap necessary condition: every edge matcher can match some edge in ``graph``."""
    return all(
        any(matcher.can_match(dep) for dep in graph.dependencies)
        for matcher in extractor.pattern.edge_matchers
    )


def confidence_over_threshold(extractor: PatternExtractor, threshold: float) -> bool:
    """False only when the extractor has a fixed confidence below ``threshold``."""
    if extractor.confidence is None:
        return True
    return extractor.confidence >= threshold


def deduplicate(results: Sequence[RankedExtraction]) -> List[RankedExtraction]:
    """Keep the highest-confidence member of each group of equal extractions."""
    best: Dict[DetailedExtraction, RankedExtraction] = {}
    for result in results:
        current = best.get(result.extraction)
        if current is None or result.confidence > current.confidence:
            best[result.extraction] = result
    return list(best.values())


class PatternExtractionPipeline:
    """Apply pattern extractors to dependency graphs."""

    def __init__(
        self,
        extractors: Sequence[PatternExtractor],
        config: Optional[ExtractorConfig] = None,
        *,
        build: Optional[BuildFn] = None,
        valid: Optional[ValidFn] = None,
    ) -> None:
        self.extractors = list(extractors)
        self.config = config or ExtractorConfig()
        self.build: BuildFn = build or partial(build_extraction, expand=self.config.expand_extraction)
        self.valid: ValidFn = valid or partial(
            valid_match, restrict_arguments=self.config.restrict_arguments
        )

        logger.info(
            f"Initialized PatternExtractionPipeline with {len(self.extractors)} extractors "
            f"(threshold={self.config.confidence_threshold}, "
            f"expand={self.config.expand_extraction}, "
            f"keep_duplicates={self.config.keep_duplicates})"
        )

    def simplify_graph(self, graph: DependencyGraph) -> DependencyGraph:
        if self.config.simplify_postags:
            graph = graph.simplify_postags()
        if self.config.simplify_vb_postags:
            graph = graph.simplify_vb_postags()
        return graph

    def extract(self, graph: DependencyGraph) -> List[RankedExtraction]:
        """Extract, score, deduplicate and rank every extraction from ``graph``."""
        dgraph = self.simplify_graph(graph)
        threshold = self.config.confidence_threshold

        results: List[RankedExtraction] = []
        for extractor in self.extractors:
            # TODO: index extractors by edge label so infeasible patterns are never visited
            if not possible_extraction(extractor, dgraph):
                continue
            if not confidence_over_threshold(extractor, threshold):
                continue

            for extraction in extractor.extract(dgraph, self.build, self.valid):
                confidence = extractor.confidence_of(extraction)
                if confidence >= threshold:
                    results.append(RankedExtraction(confidence, extraction))

        if not self.config.keep_duplicates:
            before = len(results)
            results = deduplicate(results)
            if before != len(results):
                logger.debug(f"Removed {before - len(results)} duplicate extractions")

        return sorted(results)
