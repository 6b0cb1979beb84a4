from __future__ import annotations

from patternie.extraction.expansion import (
    ARGUMENT_LABELS,
    augment,
    components,
    expand,
    expand_adjacent,
    expand_argument,
    expand_relation,
    neighbors_until,
)
from patternie.graph.dependency_graph import span_of


def _texts(nodes):
    return [node.text for node in nodes]


def test_argument_with_relative_clause(dog_graph):
    dog, chased, cat = dog_graph.node(2), dog_graph.node(6), dog_graph.node(8)

    subject = expand_argument(dog_graph, dog, {chased, cat})

    assert _texts(subject) == ["The", "small", "dog", "that", "barked", "loudly"]


def test_argument_without_components(dog_graph):
    dog, chased, cat = dog_graph.node(2), dog_graph.node(6), dog_graph.node(8)

    assert _texts(expand_argument(dog_graph, cat, {chased, dog})) == ["the", "cat"]


def test_relation_rejects_object_that_is_an_argument(dog_graph):
    dog, chased, cat = dog_graph.node(2), dog_graph.node(6), dog_graph.node(8)

    nodes, text = expand_relation(dog_graph, chased, {dog, cat})

    assert _texts(nodes) == ["chased"]
    assert text == "chased"


def test_collapsed_preposition_recovered(city_graph):
    city = city_graph.node(1)

    assert _texts(expand_argument(city_graph, city, {city_graph.node(4)})) == ["the", "city", "of", "Paris"]


def test_proper_noun_phrase_skips_clauses(build_graph):
    tokens = [
        ("John", "NNP"),
        ("Smith", "NNP"),
        ("who", "WP"),
        ("lives", "VBZ"),
        ("here", "RB"),
        ("left", "VBD"),
    ]
    edges = [
        ("nn", 1, 0),
        ("rcmod", 1, 3),
        ("nsubj", 3, 2),
        ("advmod", 3, 4),
        ("nsubj", 5, 1),
    ]
    proper = build_graph(tokens, edges)
    assert _texts(expand_argument(proper, proper.node(1), {proper.node(5)})) == ["John", "Smith"]

    common = build_graph([(text, "NN" if tag == "NNP" else tag) for text, tag in tokens], edges)
    assert _texts(expand_argument(common, common.node(1), {common.node(5)})) == [
        "John",
        "Smith",
        "who",
        "lives",
        "here",
    ]


def test_conjunction_expands_to_whole_coordination(conjunction_graph):
    cats, dogs = conjunction_graph.node(0), conjunction_graph.node(2)
    until = {conjunction_graph.node(3), conjunction_graph.node(4)}

    from_cats = expand_argument(conjunction_graph, cats, until)
    from_dogs = expand_argument(conjunction_graph, dogs, until)

    assert _texts(from_cats) == ["cats", "and", "dogs"]
    assert from_cats == from_dogs


def test_expand_stops_at_until_node(build_graph):
    graph = build_graph(
        [("the", "DT"), ("big", "JJ"), ("red", "JJ"), ("ball", "NN")],
        [("det", 3, 0), ("amod", 3, 1), ("amod", 3, 2)],
    )
    ball, big = graph.node(3), graph.node(1)

    assert _texts(expand(graph, ball, (), ARGUMENT_LABELS)) == ["the", "big", "red", "ball"]
    assert _texts(expand(graph, ball, {big}, ARGUMENT_LABELS)) == ["red", "ball"]


def test_neighbors_until_covers_interval(city_graph):
    city, paris = city_graph.node(1), city_graph.node(3)

    assert _texts(neighbors_until(city_graph, city, [city, paris], ())) == ["city", "of", "Paris"]
    assert _texts(neighbors_until(city_graph, city, [city, paris], {paris})) == ["city"]


def test_expand_adjacent_requires_bordering_nodes(city_graph):
    city = city_graph.node(1)

    adjacent = expand_adjacent(city_graph, city, (), {"det", "prep_of"})
    assert _texts(adjacent) == ["the", "city"]

    gapped = expand(city_graph, city, (), {"det", "prep_of"})
    assert _texts(gapped) == ["the", "city", "of", "Paris"]


def test_expansion_is_monotonic_in_labels(city_graph):
    city = city_graph.node(1)

    narrow = set(expand(city_graph, city, (), {"det"}))
    wide = set(expand(city_graph, city, (), {"det", "prep_of"}))

    assert narrow <= wide
    assert _texts(sorted(narrow)) == ["the", "city"]


def _assert_fixed_point(graph, anchor, until):
    expanded = set(expand_argument(graph, anchor, until))

    reexpanded = set()
    for member in expanded:
        member_expansion = set(expand_argument(graph, member, until))
        assert member_expansion <= expanded, member.text
        reexpanded |= member_expansion

    assert reexpanded == expanded
    assert set(graph.nodes_in(span_of(expanded))) == expanded


def test_expansion_is_a_fixed_point(dog_graph, city_graph, conjunction_graph):
    dog, chased, cat = dog_graph.node(2), dog_graph.node(6), dog_graph.node(8)
    _assert_fixed_point(dog_graph, dog, {chased, cat})
    _assert_fixed_point(dog_graph, cat, {chased, dog})

    _assert_fixed_point(city_graph, city_graph.node(1), {city_graph.node(4)})

    until = {conjunction_graph.node(3), conjunction_graph.node(4)}
    _assert_fixed_point(conjunction_graph, conjunction_graph.node(0), until)


def _nested_clause_graph(build_graph):
    """the man who saw the dog that barked"""
    return build_graph(
        [
            ("the", "DT"),
            ("man", "NN"),
            ("who", "WP"),
            ("saw", "VBD"),
            ("the", "DT"),
            ("dog", "NN"),
            ("that", "WDT"),
            ("barked", "VBD"),
        ],
        [
            ("det", 1, 0),
            ("rcmod", 1, 3),
            ("nsubj", 3, 2),
            ("dobj", 3, 5),
            ("det", 5, 4),
            ("rcmod", 5, 7),
            ("nsubj", 7, 6),
        ],
    )


def test_components_nested(build_graph):
    graph = _nested_clause_graph(build_graph)
    man = graph.node(1)

    flat = components(graph, man, {"rcmod"}, (), nested=False)
    nested = components(graph, man, {"rcmod"}, (), nested=True)

    assert _texts(flat) == ["who", "saw", "the", "dog"]
    assert _texts(nested) == ["who", "saw", "the", "dog", "that", "barked"]


def test_components_discarded_when_touching_excluded_node(build_graph):
    graph = _nested_clause_graph(build_graph)

    assert components(graph, graph.node(1), {"rcmod"}, {graph.node(5)}, nested=False) == []


def _phrasal_verb_graph(build_graph):
    """She has quickly given up hope"""
    return build_graph(
        [
            ("She", "PRP"),
            ("has", "VBZ"),
            ("quickly", "RB"),
            ("given", "VBN"),
            ("up", "RP"),
            ("hope", "NN"),
        ],
        [
            ("nsubj", 3, 0),
            ("aux", 3, 1),
            ("advmod", 3, 2),
            ("prt", 3, 4),
            ("dobj", 3, 5),
        ],
    )


def test_augment_keeps_separate_sets(build_graph):
    graph = _phrasal_verb_graph(build_graph)

    found = augment(graph, graph.node(3), (), lambda edge: edge.label in {"aux", "prt"})

    assert sorted(_texts(nodes) for nodes in found) == [["has"], ["up"]]


def test_relation_absorbs_auxiliaries_and_particles(build_graph):
    graph = _phrasal_verb_graph(build_graph)
    she, given, hope = graph.node(0), graph.node(3), graph.node(5)

    nodes, text = expand_relation(graph, given, {she, hope})

    assert _texts(nodes) == ["has", "quickly", "given", "up"]
    assert text == "has quickly given up"


def test_relation_text_skips_unreached_tokens(build_graph):
    graph = build_graph(
        [
            ("He", "PRP"),
            ("was", "VBD"),
            (",", ","),
            ("however", "RB"),
            (",", ","),
            ("elected", "VBN"),
            ("mayor", "NN"),
        ],
        [
            ("nsubjpass", 5, 0),
            ("auxpass", 5, 1),
            ("punct", 5, 2),
            ("advmod", 5, 3),
            ("punct", 5, 4),
            ("xcomp", 5, 6),
        ],
    )

    nodes, text = expand_relation(graph, graph.node(5), {graph.node(0), graph.node(6)})

    assert _texts(nodes) == ["was", "however", "elected"]
    assert text == "was however elected"


def _light_verb_graph(build_graph, extra_object=False):
    """He took a long walk in parks"""
    tokens = [
        ("He", "PRP"),
        ("took", "VBD"),
        ("a", "DT"),
        ("long", "JJ"),
        ("walk", "NN"),
        ("in", "IN"),
        ("parks", "NNS"),
    ]
    edges = [
        ("nsubj", 1, 0),
        ("dobj", 1, 4),
        ("det", 4, 2),
        ("amod", 4, 3),
        ("prep_in", 1, 6),
    ]
    if extra_object:
        tokens.append(("twice", "NN"))
        edges.append(("dobj", 1, 7))
    return build_graph(tokens, edges)


def test_relation_absorbs_single_direct_object(build_graph):
    graph = _light_verb_graph(build_graph)

    nodes, text = expand_relation(graph, graph.node(1), {graph.node(0), graph.node(6)})

    assert _texts(nodes) == ["took", "a", "long", "walk"]
    assert text == "took a long walk"


def test_relation_ignores_ambiguous_direct_objects(build_graph):
    graph = _light_verb_graph(build_graph, extra_object=True)

    nodes, text = expand_relation(graph, graph.node(1), {graph.node(0), graph.node(6)})

    assert _texts(nodes) == ["took"]
    assert text == "took"
