from __future__ import annotations

import pytest
import spacy
from spacy.tokens import Doc
from spacy.vocab import Vocab

from patternie.extraction.pattern_extractor import GeneralExtractor
from patternie.graph.dependency_graph import DependencyGraph
from patternie.graph.spacy_adapter import SpacyGraphParser, graph_from_doc
from patternie.pipeline.extraction_pipeline import PatternExtractionPipeline
from patternie.utils.config import SpacyConfig


def _edges(graph):
    return {(dep.label, dep.source.text, dep.dest.text) for dep in graph.dependencies}


def _doc(words, heads, deps, tags):
    return Doc(Vocab(), words=words, heads=heads, deps=deps, tags=tags)


def test_preposition_collapsed_into_label():
    doc = _doc(
        ["The", "city", "of", "Paris", "grows"],
        [1, 4, 1, 2, 4],
        ["det", "nsubj", "prep", "pobj", "ROOT"],
        ["DT", "NN", "IN", "NNP", "VBZ"],
    )

    graph = graph_from_doc(doc)

    assert _edges(graph) == {
        ("det", "city", "The"),
        ("nsubj", "grows", "city"),
        ("prep_of", "city", "Paris"),
    }
    # the preposition keeps its place in the node array
    assert [node.text for node in graph.nodes] == ["The", "city", "of", "Paris", "grows"]
    assert graph.node(3).postag == "NNP"


def test_conjunction_named_by_coordinator():
    doc = _doc(
        ["cats", "and", "dogs", "run"],
        [3, 0, 0, 3],
        ["nsubj", "cc", "conj", "ROOT"],
        ["NNS", "CC", "NNS", "VBP"],
    )

    assert _edges(graph_from_doc(doc)) == {
        ("nsubj", "run", "cats"),
        ("conj_and", "cats", "dogs"),
    }


def test_clausal_modifiers_and_renamed_labels():
    doc = _doc(
        ["power", "efforts", "to", "win"],
        [1, 1, 3, 1],
        ["compound", "ROOT", "aux", "acl"],
        ["NN", "NNS", "TO", "VB"],
    )

    assert _edges(graph_from_doc(doc)) == {
        ("nn", "efforts", "power"),
        ("aux", "win", "to"),
        ("infmod", "efforts", "win"),
    }


def test_participial_modifier():
    doc = _doc(
        ["reports", "filed", "yesterday"],
        [0, 0, 1],
        ["ROOT", "acl", "npadvmod"],
        ["NNS", "VBN", "NN"],
    )

    assert ("partmod", "reports", "filed") in _edges(graph_from_doc(doc))


def test_parser_splits_sentences():
    nlp = spacy.blank("en")
    nlp.add_pipe("sentencizer")
    parser = SpacyGraphParser(nlp=nlp)

    graphs = parser.parse("Dogs bark. Cats meow.")

    assert [graph.text for graph in graphs] == ["Dogs bark .", "Cats meow ."]
    assert all(not graph.dependencies for graph in graphs)
    assert all(node.postag == "X" for node in graphs[0].nodes)


def test_missing_model_raises():
    with pytest.raises(RuntimeError, match="not installed"):
        SpacyGraphParser(SpacyConfig(model="no_such_spacy_model"))


def test_passive_agent_collapsed_onto_object():
    doc = _doc(
        ["The", "book", "was", "written", "by", "John"],
        [1, 3, 3, 3, 3, 4],
        ["det", "nsubjpass", "auxpass", "ROOT", "agent", "pobj"],
        ["DT", "NN", "VBD", "VBN", "IN", "NNP"],
    )

    graph = graph_from_doc(doc)

    assert _edges(graph) == {
        ("det", "book", "The"),
        ("nsubjpass", "written", "book"),
        ("auxpass", "written", "was"),
        ("agent", "written", "John"),
    }

    pattern = "{arg1} <nsubjpass< {rel:postag=VBN} >agent> {arg2}"
    results = PatternExtractionPipeline([GeneralExtractor(pattern=pattern)]).extract(graph)
    assert [str(result.extraction) for result in results] == ["(The book; was written; John)"]


def test_dative_with_preposition_collapsed():
    to_john = _doc(
        ["She", "gave", "it", "to", "John"],
        [1, 1, 1, 1, 3],
        ["nsubj", "ROOT", "dobj", "dative", "pobj"],
        ["PRP", "VBD", "PRP", "IN", "NNP"],
    )
    bare = _doc(
        ["She", "gave", "John", "it"],
        [1, 1, 1, 1],
        ["nsubj", "ROOT", "dative", "dobj"],
        ["PRP", "VBD", "NNP", "PRP"],
    )

    assert ("prep_to", "gave", "John") in _edges(graph_from_doc(to_john))
    assert ("iobj", "gave", "John") in _edges(graph_from_doc(bare))


def test_whitespace_tokens_dropped():
    doc = _doc(["dogs", " ", "bark"], [2, 2, 2], ["nsubj", "dep", "ROOT"], ["NNS", "_SP", "VBP"])

    graph = graph_from_doc(doc)

    assert [(node.index, node.text) for node in graph.nodes] == [(0, "dogs"), (2, "bark")]
    assert _edges(graph) == {("nsubj", "bark", "dogs")}
    assert DependencyGraph.deserialize(graph.serialize()) == graph


def test_parsed_graphs_round_trip():
    nlp = spacy.blank("en")
    nlp.add_pipe("sentencizer")

    [graph] = SpacyGraphParser(nlp=nlp).parse("Dogs  bark.")

    assert graph.text == "Dogs bark ."
    assert DependencyGraph.deserialize(graph.serialize()) == graph
