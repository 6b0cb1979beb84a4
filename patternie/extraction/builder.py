"""Assemble validated extractions from pattern matches."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from loguru import logger

from patternie.extraction.expansion import expand_argument, expand_relation
from patternie.extraction.models import DetailedExtraction
from patternie.extraction.pattern import Match
from patternie.graph.dependency_graph import DependencyGraph, DependencyNode, nodes_to_string, span_of

if TYPE_CHECKING:
    from patternie.extraction.pattern_extractor import PatternExtractor

VALID_ARG_POSTAGS = frozenset({"NN", "NNS", "NNP", "NNPS", "JJ", "JJS", "CD", "PRP"})

BuildFn = Callable[[DependencyGraph, Match, Any], Optional[DetailedExtraction]]
ValidFn = Callable[[DependencyGraph, Match], bool]


def required_group(match: Match, name: str) -> DependencyNode:
    """Return a named node group, failing loudly when the pattern did not capture it."""
    node = match.get(name)
    if node is None:
        raise ValueError(f"no {name}: {match}")
    return node


def build_extraction(
    graph: DependencyGraph,
    match: Match,
    extractor: "PatternExtractor",
    *,
    expand: bool = True,
) -> Optional[DetailedExtraction]:
    """Expand a match's anchors and build an extraction.

    Returns ``None`` when the expanded arguments overlap.

    Raises:
        ValueError: If the match lacks a ``rel``, ``arg1`` or ``arg2`` group
    """
    rel = required_group(match, "rel")
    arg1 = required_group(match, "arg1")
    arg2 = required_group(match, "arg2")

    if expand:
        arg1_nodes = expand_argument(graph, arg1, frozenset({rel, arg2}))
        arg2_nodes = expand_argument(graph, arg2, frozenset({rel, arg1}))
        rel_nodes, rel_text = expand_relation(graph, rel, frozenset({arg1, arg2}))
    else:
        arg1_nodes, arg2_nodes = (arg1,), (arg2,)
        rel_nodes, rel_text = (rel,), rel.text

    if span_of(arg1_nodes).intersects(span_of(arg2_nodes)):
        logger.info(
            f"invalid: arguments overlap: {nodes_to_string(arg1_nodes)}, {nodes_to_string(arg2_nodes)}"
        )
        return None

    return DetailedExtraction(
        extractor=extractor,
        match=match,
        arg1_nodes=arg1_nodes,
        rel_nodes=rel_nodes,
        rel_text=rel_text,
        arg2_nodes=arg2_nodes,
    )


def valid_match(graph: DependencyGraph, match: Match, *, restrict_arguments: bool = True) -> bool:
    """Whether both argument anchors carry a noun-like, adjective, numeral or pronoun tag."""
    if not restrict_arguments:
        return True
    return (
        required_group(match, "arg1").postag in VALID_ARG_POSTAGS
        and required_group(match, "arg2").postag in VALID_ARG_POSTAGS
    )
