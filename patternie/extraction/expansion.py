"""Span expansion: grow anchor nodes into complete argument and relation phrases.

Every function takes an exclusion collection (``until`` / ``without``) naming
nodes the expansion must not grow into, which is how one argument avoids
swallowing the relation or the other argument.

Several expansions finish by re-reading the graph's node array over the covering
interval of what was found. That recovers tokens the parser folded into edge
labels (the ``of`` in ``prep_of``, the ``and`` in ``conj_and``) which no edge
reaches.
"""

from __future__ import annotations

from itertools import takewhile
from typing import Callable, Collection, List, Sequence, Tuple

from patternie.graph.dependency_graph import (
    Dependency,
    DependencyGraph,
    DependencyNode,
    DirectedEdge,
    Direction,
    nodes_to_string,
    ordered,
    span_of,
)
from patternie.graph.interval import Interval

NodeSet = Tuple[DependencyNode, ...]

ARGUMENT_LABELS = frozenset({"det", "prep_of", "amod", "num", "nn", "poss", "quantmod", "neg"})
ARGUMENT_COMPONENT_LABELS = frozenset({"rcmod", "infmod", "partmod", "ref", "prepc_of"})
CONJUNCTION_LABELS = frozenset({"conj_and", "conj_or"})

RELATION_NOUN_LABELS = frozenset({"det", "amod", "num", "nn", "poss", "quantmod", "neg"})
RELATION_AUXILIARY_LABELS = frozenset({"aux", "cop", "auxpass", "prt"})
RELATION_OBJECT_LABELS = ("dobj", "iobj")


def _split_at(node: DependencyNode, inferiors: Sequence[DependencyNode]) -> Tuple[List[DependencyNode], List[DependencyNode]]:
    """Nodes before ``node`` (nearest first) and after it, in index order."""
    inferiors = list(inferiors)
    try:
        position = inferiors.index(node)
    except ValueError:
        return list(reversed(inferiors)), []
    return list(reversed(inferiors[:position])), inferiors[position + 1 :]


def neighbors_until(
    graph: DependencyGraph,
    node: DependencyNode,
    inferiors: Sequence[DependencyNode],
    until: Collection[DependencyNode],
) -> NodeSet:
    """Grow ``node`` outward through index-ordered ``inferiors`` up to the first ``until`` node per side.

    Returns every graph node inside the covering interval, not only the collected ones.
    """
    lefts, rights = _split_at(node, inferiors)

    def allowed(candidate: DependencyNode) -> bool:
        return candidate not in until

    collected = [node, *takewhile(allowed, lefts), *takewhile(allowed, rights)]
    return graph.nodes_in(span_of(collected))


def expand(
    graph: DependencyGraph,
    node: DependencyNode,
    until: Collection[DependencyNode],
    labels: Collection[str],
) -> NodeSet:
    """Absorb everything reachable from ``node`` over ``labels`` edges, bounded by ``until``.

    Adjacency is not required: collapsed edges such as ``prep_of`` leave gaps that
    the interval re-read fills back in.
    """
    inferiors = sorted(graph.inferiors(node, lambda edge: edge.label in labels))
    return neighbors_until(graph, node, inferiors, until)


def expand_adjacent(
    graph: DependencyGraph,
    node: DependencyNode,
    until: Collection[DependencyNode],
    labels: Collection[str],
) -> NodeSet:
    """Like :func:`expand`, but only absorbs closure members that border the span so far."""

    def take_adjacent(interval: Interval, pool: Sequence[DependencyNode]) -> List[DependencyNode]:
        taken: List[DependencyNode] = []
        for candidate in pool:
            if candidate in until or not candidate.indices.borders(interval):
                break
            interval = interval.union(candidate.indices)
            taken.append(candidate)
        return taken

    inferiors = sorted(graph.inferiors(node, lambda edge: edge.label in labels))
    lefts, rights = _split_at(node, inferiors)

    return ordered([node, *take_adjacent(node.indices, lefts), *take_adjacent(node.indices, rights)])


def components(
    graph: DependencyGraph,
    node: DependencyNode,
    labels: Collection[str],
    without: Collection[DependencyNode],
    nested: bool,
) -> List[DependencyNode]:
    """Return the components attached below ``node``.

    Args:
        graph: Sentence graph
        node: Components are found adjacent to this node
        labels: Components may be connected to ``node`` by edges with any of these labels
        without: Components may not include any of these nodes
        nested: Whether a component may descend into a further ``labels`` component

    Returns:
        Concatenated nodes of the surviving components, each re-read over its interval
    """
    across = graph.neighbors(
        node, lambda dedge: dedge.dir is Direction.DOWN and dedge.edge.label in labels
    )

    def inside_component(edge: Dependency) -> bool:
        if edge.dest == node:
            return False
        # a clause inside the clause ("..., where ...") stays out unless nested
        return nested or edge.label not in labels

    found: List[DependencyNode] = []
    for start in sorted(across):
        inferiors = graph.inferiors(start, inside_component)
        if any(excluded in inferiors for excluded in without):
            continue
        found.extend(graph.nodes_in(span_of(inferiors)))

    return found


def augment(
    graph: DependencyGraph,
    node: DependencyNode,
    without: Collection[DependencyNode],
    pred: Callable[[Dependency], bool],
) -> List[NodeSet]:
    """Full subtree of each direct successor reached over a ``pred`` edge, kept as separate sets.

    ``without`` is accepted for signature parity with the other expansions and is not applied.
    """
    return [ordered(graph.inferiors(successor)) for successor in graph.successors(node, pred)]


def _is_conjunction(dedge: DirectedEdge) -> bool:
    return dedge.edge.label in CONJUNCTION_LABELS


def expand_argument(
    graph: DependencyGraph,
    node: DependencyNode,
    until: Collection[DependencyNode],
) -> NodeSet:
    """Expand an argument anchor into its full noun phrase.

    Coordinated anchors ("X and Y") expand every conjunct and return the whole
    covering span, coordinator included. A phrase already containing a proper noun
    does not take on relative or participial clauses.
    """

    def expand_node(member: DependencyNode) -> NodeSet:
        expansion = expand(graph, member, until, ARGUMENT_LABELS)
        if any(expanded.is_proper_noun for expanded in expansion):
            return expansion
        attached = components(graph, member, ARGUMENT_COMPONENT_LABELS, until, nested=False)
        return ordered([*expansion, *attached])

    chain = graph.connected(node, _is_conjunction)

    if len(chain) == 1:
        return expand_node(node)

    flat = [expanded for member in sorted(chain) for expanded in expand_node(member)]
    return graph.nodes_in(span_of(flat))


def _is_relation_auxiliary(edge: Dependency) -> bool:
    if edge.label == "advmod":
        return edge.dest.postag == "RB"
    return edge.label in RELATION_AUXILIARY_LABELS


def expand_relation(
    graph: DependencyGraph,
    node: DependencyNode,
    until: Collection[DependencyNode],
) -> Tuple[NodeSet, str]:
    """Expand a relation anchor; returns its node set and rendered text.

    The text renders each sub-span separately in position order joined by single
    spaces, so tokens between sub-spans that no expansion reached are skipped.
    """
    outgoing = graph.outgoing(node)

    # an object label is only followed when exactly one such edge leaves the
    # anchor; it may point at an argument, in which case ``until`` rejects it
    attach_labels = {
        label
        for label in RELATION_OBJECT_LABELS
        if sum(1 for edge in outgoing if edge.label == label) == 1
    }

    expansion: List[NodeSet] = [expand(graph, node, until, RELATION_NOUN_LABELS)]
    expansion.extend(nodes for nodes in augment(graph, node, until, _is_relation_auxiliary) if nodes)

    attached = ordered(components(graph, node, attach_labels, until, nested=True))
    if attached:
        expansion.append(attached)

    by_position = sorted(expansion, key=span_of)
    text = " ".join(nodes_to_string(nodes) for nodes in by_position)

    return ordered(expanded for nodes in expansion for expanded in nodes), text
