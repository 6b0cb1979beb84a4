"""Shared sentence graphs for extraction tests."""

from __future__ import annotations

from typing import List, Sequence, Tuple

import pytest

from patternie.graph.dependency_graph import Dependency, DependencyGraph, DependencyNode


def make_graph(
    tokens: Sequence[Tuple[str, str]],
    edges: Sequence[Tuple[str, int, int]],
) -> DependencyGraph:
    """Build a graph from ``(text, postag)`` tokens and ``(label, governor, dependent)`` edges."""
    nodes: List[DependencyNode] = [
        DependencyNode(index, text, postag) for index, (text, postag) in enumerate(tokens)
    ]
    return DependencyGraph(
        nodes,
        [Dependency(nodes[source], nodes[dest], label) for label, source, dest in edges],
    )


@pytest.fixture
def dog_graph() -> DependencyGraph:
    """The small dog that barked loudly chased the cat ."""
    return make_graph(
        [
            ("The", "DT"),
            ("small", "JJ"),
            ("dog", "NN"),
            ("that", "WDT"),
            ("barked", "VBD"),
            ("loudly", "RB"),
            ("chased", "VBD"),
            ("the", "DT"),
            ("cat", "NN"),
            (".", "."),
        ],
        [
            ("det", 2, 0),
            ("amod", 2, 1),
            ("rcmod", 2, 4),
            ("nsubj", 4, 3),
            ("advmod", 4, 5),
            ("nsubj", 6, 2),
            ("dobj", 6, 8),
            ("det", 8, 7),
            ("punct", 6, 9),
        ],
    )


@pytest.fixture
def city_graph() -> DependencyGraph:
    """the city of Paris grows (``of`` is folded into the ``prep_of`` edge)"""
    return make_graph(
        [("the", "DT"), ("city", "NN"), ("of", "IN"), ("Paris", "NNP"), ("grows", "VBZ")],
        [("det", 1, 0), ("prep_of", 1, 3), ("nsubj", 4, 1)],
    )


@pytest.fixture
def conjunction_graph() -> DependencyGraph:
    """cats and dogs chase mice"""
    return make_graph(
        [("cats", "NNS"), ("and", "CC"), ("dogs", "NNS"), ("chase", "VBP"), ("mice", "NNS")],
        [
            ("conj_and", 0, 2),
            ("nsubj", 3, 0),
            ("nsubj", 3, 2),
            ("dobj", 3, 4),
        ],
    )


@pytest.fixture
def build_graph():
    return make_graph
