"""Linear dependency-path patterns and their matches.

A pattern alternates node matchers and edge matchers::

    {arg1:postag=NN|NNS} <nsubj< {rel:postag=VBD} >dobj> {arg2}

``{name:key=value}`` captures the matched node under ``name`` (``{}`` matches
without capturing); supported keys are ``postag``, ``text`` and ``lemma``, each
accepting ``|``-separated alternatives. ``>label>`` walks from a governor down to
a dependent, ``<label<`` walks from a dependent up to its governor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from patternie.graph.dependency_graph import (
    Dependency,
    DependencyGraph,
    DependencyNode,
    Direction,
)

_NODE_RE = re.compile(r"^\{([A-Za-z0-9_]*)((?::[a-z]+=[^:{}\s]+)*)\}$")
_EDGE_RE = re.compile(r"^(<|>)([^<>\s]+)(<|>)$")
_CONSTRAINT_KEYS = ("postag", "text", "lemma")


@dataclass(frozen=True)
class NodeMatcher:
    """Matches a single node, optionally capturing it under a group name."""

    name: str = ""
    constraints: Tuple[Tuple[str, Tuple[str, ...]], ...] = ()

    @classmethod
    def parse(cls, token: str) -> "NodeMatcher":
        found = _NODE_RE.match(token)
        if found is None:
            raise ValueError(f"Malformed node matcher: {token!r}")
        name, raw_constraints = found.groups()

        constraints = []
        for constraint in filter(None, raw_constraints.split(":")):
            key, _, values = constraint.partition("=")
            if key not in _CONSTRAINT_KEYS:
                raise ValueError(f"Unknown node constraint {key!r} in {token!r}")
            constraints.append((key, tuple(values.split("|"))))
        return cls(name, tuple(constraints))

    def matches(self, node: DependencyNode) -> bool:
        return all(getattr(node, key) in values for key, values in self.constraints)

    def __str__(self) -> str:
        constraints = "".join(f":{key}={'|'.join(values)}" for key, values in self.constraints)
        return "{" + self.name + constraints + "}"


@dataclass(frozen=True)
class EdgeMatcher:
    """Matches one dependency edge by label, walked in a fixed direction."""

    labels: Tuple[str, ...]
    direction: Direction

    @classmethod
    def parse(cls, token: str) -> "EdgeMatcher":
        found = _EDGE_RE.match(token)
        if found is None or found.group(1) != found.group(3):
            raise ValueError(f"Malformed edge matcher: {token!r}")
        direction = Direction.DOWN if found.group(1) == ">" else Direction.UP
        return cls(tuple(found.group(2).split("|")), direction)

    def can_match(self, edge: Dependency) -> bool:
        """Whether ``edge`` could ever be traversed by this matcher."""
        return edge.label in self.labels

    def step(self, graph: DependencyGraph, node: DependencyNode) -> List[Tuple[Dependency, DependencyNode]]:
        if self.direction is Direction.DOWN:
            return [(dep, dep.dest) for dep in graph.outgoing(node) if self.can_match(dep)]
        return [(dep, dep.source) for dep in graph.incoming(node) if self.can_match(dep)]

    def __str__(self) -> str:
        arrow = ">" if self.direction is Direction.DOWN else "<"
        return f"{arrow}{'|'.join(self.labels)}{arrow}"


@dataclass(frozen=True)
class Match:
    """A pattern match: the matched path plus its named node groups."""

    nodes: Tuple[DependencyNode, ...]
    edges: Tuple[Dependency, ...]
    groups: Tuple[Tuple[str, DependencyNode], ...]

    @property
    def node_groups(self) -> Dict[str, DependencyNode]:
        return dict(self.groups)

    def get(self, name: str) -> Optional[DependencyNode]:
        return self.node_groups.get(name)

    def __str__(self) -> str:
        groups = ", ".join(f"{name}={node.text}" for name, node in self.groups)
        return f"Match({groups})"


@dataclass(frozen=True)
class DependencyPattern:
    """A path pattern of ``n`` node matchers joined by ``n - 1`` edge matchers."""

    node_matchers: Tuple[NodeMatcher, ...]
    edge_matchers: Tuple[EdgeMatcher, ...]

    def __post_init__(self) -> None:
        if not self.node_matchers or len(self.node_matchers) != len(self.edge_matchers) + 1:
            raise ValueError("A pattern must alternate node and edge matchers, starting and ending with a node")
        names = [matcher.name for matcher in self.node_matchers if matcher.name]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate group names in pattern: {names}")

    @classmethod
    def parse(cls, text: str) -> "DependencyPattern":
        tokens = text.split()
        if len(tokens) % 2 == 0:
            raise ValueError(f"Malformed pattern: {text!r}")
        return cls(
            tuple(NodeMatcher.parse(token) for token in tokens[0::2]),
            tuple(EdgeMatcher.parse(token) for token in tokens[1::2]),
        )

    @property
    def group_names(self) -> List[str]:
        return [matcher.name for matcher in self.node_matchers if matcher.name]

    def match(self, graph: DependencyGraph) -> List[Match]:
        """Every distinct match of the pattern in ``graph``; no node is used twice in one match."""
        found: Dict[Match, None] = {}
        depth_limit = len(self.edge_matchers)

        for start in graph.nodes:
            if not self.node_matchers[0].matches(start):
                continue

            stack: List[Tuple[Tuple[DependencyNode, ...], Tuple[Dependency, ...]]] = [((start,), ())]
            while stack:
                path, edges = stack.pop()
                depth = len(edges)
                if depth == depth_limit:
                    found.setdefault(self._to_match(path, edges), None)
                    continue

                edge_matcher = self.edge_matchers[depth]
                node_matcher = self.node_matchers[depth + 1]
                steps = edge_matcher.step(graph, path[-1])
                for dep, neighbor in reversed(steps):
                    if neighbor in path or not node_matcher.matches(neighbor):
                        continue
                    stack.append((path + (neighbor,), edges + (dep,)))

        return list(found)

    def _to_match(self, path: Tuple[DependencyNode, ...], edges: Tuple[Dependency, ...]) -> Match:
        groups = tuple(
            (matcher.name, node) for matcher, node in zip(self.node_matchers, path) if matcher.name
        )
        return Match(path, edges, groups)

    def __str__(self) -> str:
        parts = [str(self.node_matchers[0])]
        for edge_matcher, node_matcher in zip(self.edge_matchers, self.node_matchers[1:]):
            parts.extend((str(edge_matcher), str(node_matcher)))
        return " ".join(parts)
