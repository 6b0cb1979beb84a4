"""Graph package exports."""

from patternie.graph.dependency_graph import (
    Dependency,
    DependencyGraph,
    DependencyNode,
    DirectedEdge,
    Direction,
    GraphSerializationError,
    nodes_to_string,
    ordered,
    span_of,
)
from patternie.graph.interval import Interval

__all__ = [
    "Dependency",
    "DependencyGraph",
    "DependencyNode",
    "DirectedEdge",
    "Direction",
    "GraphSerializationError",
    "Interval",
    "nodes_to_string",
    "ordered",
    "span_of",
]
