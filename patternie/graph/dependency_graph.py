"""Dependency graph value types and predicate-filtered traversal queries.

A sentence graph is an index-sorted array of token nodes plus labelled, directed
dependency edges. Adjacency lists are built once at construction; every query is
an explicit worklist traversal with a visited set, so malformed (cyclic) parses
are safe to explore. Graphs are never mutated; tag simplification returns a new
graph over new node values with the same indices.
"""

from __future__ import annotations

import re
from bisect import bisect_left, bisect_right
from collections import defaultdict
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from patternie.graph.interval import Interval

PROPER_NOUN_POSTAGS = frozenset({"NNP", "NNPS"})

_SIMPLE_POSTAGS = {
    "NNS": "NN",
    "NNPS": "NNP",
    "JJS": "JJ",
    "JJR": "JJ",
}

_DEPENDENCY_RE = re.compile(r"^([^()\s]*)\((.*)\)$")


class GraphSerializationError(ValueError):
    """Raised when a serialized dependency graph cannot be parsed."""


@dataclass(frozen=True, order=True)
class DependencyNode:
    """A token in a dependency graph, identified and ordered by its index."""

    index: int
    text: str = field(compare=False)
    postag: str = field(compare=False)
    lemma: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.lemma:
            object.__setattr__(self, "lemma", self.text.lower())

    @property
    def indices(self) -> Interval:
        return Interval.single(self.index)

    @property
    def is_proper_noun(self) -> bool:
        return self.postag in PROPER_NOUN_POSTAGS

    def serialize(self) -> str:
        return f"{self.text}_{self.postag}_{self.index}"

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Dependency:
    """A labelled edge from a governor (``source``) to a dependent (``dest``)."""

    source: DependencyNode
    dest: DependencyNode
    label: str

    def serialize(self) -> str:
        return f"{self.label}({self.source.serialize()}, {self.dest.serialize()})"

    def __str__(self) -> str:
        return self.serialize()


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"


@dataclass(frozen=True)
class DirectedEdge:
    """An edge as seen while walking from one of its endpoints."""

    edge: Dependency
    dir: Direction

    @property
    def start(self) -> DependencyNode:
        return self.edge.source if self.dir is Direction.DOWN else self.edge.dest

    @property
    def end(self) -> DependencyNode:
        return self.edge.dest if self.dir is Direction.DOWN else self.edge.source


EdgePredicate = Callable[[Dependency], bool]
DirectedEdgePredicate = Callable[[DirectedEdge], bool]


def span_of(nodes: Iterable[DependencyNode]) -> Interval:
    """Covering interval of a node collection."""
    return Interval.span(node.indices for node in nodes)


def ordered(nodes: Iterable[DependencyNode]) -> Tuple[DependencyNode, ...]:
    """Deduplicate nodes and sort them by index."""
    return tuple(sorted(set(nodes)))


class DependencyGraph:
    """Immutable dependency graph over index-ordered nodes."""

    def __init__(
        self,
        nodes: Iterable[DependencyNode],
        dependencies: Iterable[Dependency] = (),
    ) -> None:
        by_index: Dict[int, DependencyNode] = {}
        for node in nodes:
            existing = by_index.get(node.index)
            if existing is not None and existing.text != node.text:
                raise ValueError(
                    f"Conflicting nodes for index {node.index}: {existing.text!r} and {node.text!r}"
                )
            by_index.setdefault(node.index, node)

        self._by_index = by_index
        self._nodes: Tuple[DependencyNode, ...] = tuple(sorted(by_index.values()))
        self._indices: List[int] = [node.index for node in self._nodes]

        edges: Dict[Dependency, None] = {}
        for dep in dependencies:
            try:
                source = by_index[dep.source.index]
                dest = by_index[dep.dest.index]
            except KeyError as exc:
                raise ValueError(f"Dependency {dep} references a node outside the graph") from exc
            edges.setdefault(Dependency(source, dest, dep.label), None)
        self._dependencies: Tuple[Dependency, ...] = tuple(edges)

        self._outgoing: Dict[DependencyNode, List[Dependency]] = defaultdict(list)
        self._incoming: Dict[DependencyNode, List[Dependency]] = defaultdict(list)
        for dep in self._dependencies:
            self._outgoing[dep.source].append(dep)
            self._incoming[dep.dest].append(dep)

    # ------------------------------------------------------------------ basics

    @property
    def nodes(self) -> Tuple[DependencyNode, ...]:
        return self._nodes

    @property
    def dependencies(self) -> Tuple[Dependency, ...]:
        return self._dependencies

    @property
    def text(self) -> str:
        return " ".join(node.text for node in self._nodes)

    def node(self, index: int) -> DependencyNode:
        return self._by_index[index]

    def __contains__(self, node: object) -> bool:
        return isinstance(node, DependencyNode) and node.index in self._by_index

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DependencyGraph):
            return NotImplemented
        return self._render() == other._render()

    def __hash__(self) -> int:
        return hash(self._render())

    def __repr__(self) -> str:
        return f"DependencyGraph({self._render()!r})"

    # ------------------------------------------------------------------ edges

    def outgoing(self, node: DependencyNode) -> Tuple[Dependency, ...]:
        return tuple(self._outgoing.get(node, ()))

    def incoming(self, node: DependencyNode) -> Tuple[Dependency, ...]:
        return tuple(self._incoming.get(node, ()))

    def edges(self, node: DependencyNode) -> Tuple[Dependency, ...]:
        """Every edge touching ``node`` in either direction."""
        return self.outgoing(node) + self.incoming(node)

    def directed_edges(self, node: DependencyNode) -> List[DirectedEdge]:
        return [DirectedEdge(dep, Direction.DOWN) for dep in self._outgoing.get(node, ())] + [
            DirectedEdge(dep, Direction.UP) for dep in self._incoming.get(node, ())
        ]

    # ---------------------------------------------------------------- queries

    def successors(
        self, node: DependencyNode, cond: Optional[EdgePredicate] = None
    ) -> List[DependencyNode]:
        """Direct dependents of ``node`` across edges satisfying ``cond``."""
        found: Dict[DependencyNode, None] = {}
        for dep in self._outgoing.get(node, ()):
            if cond is None or cond(dep):
                found.setdefault(dep.dest, None)
        return list(found)

    def inferiors(
        self, node: DependencyNode, cond: Optional[EdgePredicate] = None
    ) -> Set[DependencyNode]:
        """Transitive closure downward from ``node`` (inclusive) over edges satisfying ``cond``."""
        visited: Set[DependencyNode] = {node}
        worklist = [node]
        while worklist:
            current = worklist.pop()
            for dep in self._outgoing.get(current, ()):
                if dep.dest in visited:
                    continue
                if cond is not None and not cond(dep):
                    continue
                visited.add(dep.dest)
                worklist.append(dep.dest)
        return visited

    def neighbors(
        self, node: DependencyNode, pred: Optional[DirectedEdgePredicate] = None
    ) -> Set[DependencyNode]:
        """Nodes one edge away from ``node`` in either direction, filtered by ``pred``."""
        return {
            dedge.end
            for dedge in self.directed_edges(node)
            if pred is None or pred(dedge)
        }

    def connected(
        self, node: DependencyNode, pred: Optional[DirectedEdgePredicate] = None
    ) -> Set[DependencyNode]:
        """Connected component of ``node`` over directed edges satisfying ``pred``."""
        visited: Set[DependencyNode] = {node}
        worklist = [node]
        while worklist:
            current = worklist.pop()
            for neighbor in self.neighbors(current, pred):
                if neighbor not in visited:
                    visited.add(neighbor)
                    worklist.append(neighbor)
        return visited

    def nodes_in(self, interval: Interval) -> Tuple[DependencyNode, ...]:
        """All graph nodes whose index lies inside ``interval``."""
        lo = bisect_left(self._indices, interval.start)
        hi = bisect_right(self._indices, interval.end)
        return self._nodes[lo:hi]

    # -------------------------------------------------------------- transforms

    def _map_nodes(self, mapping: Callable[[DependencyNode], DependencyNode]) -> "DependencyGraph":
        nodes = {node: mapping(node) for node in self._nodes}
        return DependencyGraph(
            nodes.values(),
            (Dependency(nodes[dep.source], nodes[dep.dest], dep.label) for dep in self._dependencies),
        )

    def simplify_postags(self) -> "DependencyGraph":
        """Collapse plural and comparative/superlative tags (NNS -> NN, JJS -> JJ, ...)."""

        def simplify(node: DependencyNode) -> DependencyNode:
            simple = _SIMPLE_POSTAGS.get(node.postag)
            return replace(node, postag=simple) if simple else node

        return self._map_nodes(simplify)

    def simplify_vb_postags(self) -> "DependencyGraph":
        """Collapse every ``VB*`` tag to ``VB``."""

        def simplify(node: DependencyNode) -> DependencyNode:
            if node.postag.startswith("VB") and node.postag != "VB":
                return replace(node, postag="VB")
            return node

        return self._map_nodes(simplify)

    # ----------------------------------------------------------- serialization

    def serialize(self) -> str:
        """Serialize as ``label(gov_TAG_i, dep_TAG_j); ...`` followed by isolated nodes.

        Raises:
            GraphSerializationError: If a token is empty or contains whitespace
        """
        for node in self._nodes:
            if not node.text or any(char.isspace() for char in node.text + node.postag):
                raise GraphSerializationError(f"Token {node.index} cannot be serialized: {node.text!r}")
        return self._render()

    def _render(self) -> str:
        parts = [dep.serialize() for dep in self._dependencies]
        attached = {dep.source for dep in self._dependencies} | {dep.dest for dep in self._dependencies}
        parts.extend(f"({node.serialize()})" for node in self._nodes if node not in attached)
        return "; ".join(parts)

    @classmethod
    def deserialize(cls, text: str) -> "DependencyGraph":
        """Parse the format produced by :meth:`serialize`."""
        nodes: Dict[int, DependencyNode] = {}
        dependencies: List[Tuple[int, int, str]] = []

        def register(token: str) -> int:
            node = _deserialize_node(token)
            existing = nodes.get(node.index)
            if existing is not None and (existing.text, existing.postag) != (node.text, node.postag):
                raise GraphSerializationError(f"Conflicting tokens for index {node.index}: {token!r}")
            nodes.setdefault(node.index, node)
            return node.index

        for part in text.strip().split("; ") if text.strip() else []:
            found = _DEPENDENCY_RE.match(part.strip())
            if found is None:
                raise GraphSerializationError(f"Malformed dependency: {part!r}")
            label, inner = found.groups()
            if not label:
                register(inner)
                continue
            pieces = inner.split(", ", 1)
            if len(pieces) != 2:
                raise GraphSerializationError(f"Dependency needs two endpoints: {part!r}")
            dependencies.append((register(pieces[0]), register(pieces[1]), label))

        return cls(
            nodes.values(),
            (Dependency(nodes[source], nodes[dest], label) for source, dest, label in dependencies),
        )


def _deserialize_node(token: str) -> DependencyNode:
    pieces = token.strip().rsplit("_", 2)
    if len(pieces) != 3 or not pieces[0] or not pieces[1]:
        raise GraphSerializationError(f"Malformed token: {token!r}")
    text, postag, index = pieces
    try:
        return DependencyNode(int(index), text, postag)
    except ValueError as exc:
        raise GraphSerializationError(f"Malformed token index: {token!r}") from exc


def nodes_to_string(nodes: Sequence[DependencyNode]) -> str:
    """Render a node sequence as space-joined token text."""
    return " ".join(node.text for node in nodes)
