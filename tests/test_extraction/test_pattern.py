from __future__ import annotations

import pytest

from patternie.extraction.pattern import DependencyPattern, EdgeMatcher, NodeMatcher
from patternie.graph.dependency_graph import Dependency, DependencyNode, Direction

SUBJECT_OBJECT = "{arg1} <nsubj< {rel:postag=VBD} >dobj> {arg2}"


def test_node_matcher_constraints():
    matcher = NodeMatcher.parse("{rel:postag=VBD|VBZ:lemma=chase}")

    assert matcher.name == "rel"
    assert matcher.matches(DependencyNode(0, "chased", "VBD", "chase"))
    assert matcher.matches(DependencyNode(0, "chases", "VBZ", "chase"))
    assert not matcher.matches(DependencyNode(0, "chased", "VBN", "chase"))
    assert not matcher.matches(DependencyNode(0, "ran", "VBD", "run"))


def test_anonymous_node_matcher_matches_anything():
    matcher = NodeMatcher.parse("{}")
    assert matcher.name == ""
    assert matcher.matches(DependencyNode(3, "x", "SYM"))


@pytest.mark.parametrize("token", ["arg1", "{arg1", "{arg1:color=red}", "{arg1:postag}"])
def test_malformed_node_matcher(token):
    with pytest.raises(ValueError):
        NodeMatcher.parse(token)


def test_edge_matcher_direction_and_labels():
    down = EdgeMatcher.parse(">dobj|iobj>")
    up = EdgeMatcher.parse("<nsubj<")

    assert down.direction is Direction.DOWN
    assert down.labels == ("dobj", "iobj")
    assert up.direction is Direction.UP

    a, b = DependencyNode(0, "a", "NN"), DependencyNode(1, "b", "VB")
    assert down.can_match(Dependency(b, a, "iobj"))
    assert not down.can_match(Dependency(b, a, "nsubj"))


@pytest.mark.parametrize("token", ["nsubj", ">nsubj<", "<<", ">a b>"])
def test_malformed_edge_matcher(token):
    with pytest.raises(ValueError):
        EdgeMatcher.parse(token)


def test_pattern_string_round_trip():
    pattern = DependencyPattern.parse(SUBJECT_OBJECT)
    assert str(pattern) == SUBJECT_OBJECT
    assert DependencyPattern.parse(str(pattern)) == pattern
    assert pattern.group_names == ["arg1", "rel", "arg2"]


@pytest.mark.parametrize(
    "text",
    [
        "{arg1} <nsubj<",
        "{arg1} {rel}",
        "{arg1} <nsubj< {arg1}",
        "",
    ],
)
def test_malformed_pattern(text):
    with pytest.raises(ValueError):
        DependencyPattern.parse(text)


def test_match_subject_verb_object(dog_graph):
    matches = DependencyPattern.parse(SUBJECT_OBJECT).match(dog_graph)

    assert len(matches) == 1
    groups = matches[0].node_groups
    assert (groups["arg1"].text, groups["rel"].text, groups["arg2"].text) == ("dog", "chased", "cat")
    assert [edge.label for edge in matches[0].edges] == ["nsubj", "dobj"]
    assert matches[0].get("missing") is None


def test_match_respects_node_constraints(dog_graph):
    assert DependencyPattern.parse("{arg1} <nsubj< {rel:postag=VBZ} >dobj> {arg2}").match(dog_graph) == []


def test_match_never_reuses_a_node(build_graph):
    graph = build_graph(
        [("a", "NN"), ("b", "NN")],
        [("dep", 0, 1), ("dep", 1, 0)],
    )

    matches = DependencyPattern.parse("{x} >dep> {y} >dep> {z}").match(graph)

    assert matches == []


def test_match_finds_every_path(conjunction_graph):
    matches = DependencyPattern.parse("{arg1} <nsubj< {rel} >dobj> {arg2}").match(conjunction_graph)

    subjects = sorted(match.get("arg1").text for match in matches)
    assert subjects == ["cats", "dogs"]
