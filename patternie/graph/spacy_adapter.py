"""Build collapsed dependency graphs from spaCy parses.

spaCy produces basic dependencies. The expansion heuristics expect collapsed,
Stanford-style labels, so prepositions and coordinators are folded into the
labels of the edges they introduce (``prep_of``, ``prepc_of``, ``conj_and``)
while their tokens stay in the node array. A handful of labels are renamed to
their Stanford equivalents.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import spacy
from loguru import logger
from spacy.language import Language
from spacy.tokens import Doc, Token

from patternie.graph.dependency_graph import Dependency, DependencyGraph, DependencyNode
from patternie.utils.config import SpacyConfig

_LABEL_MAP = {
    "compound": "nn",
    "nummod": "num",
    "relcl": "rcmod",
    "dative": "iobj",
    "case": "possessive",
}

_PREPOSITION_OBJECTS = {"pobj": "prep", "pcomp": "prepc"}

# arcs whose object is attached directly to the arc's head
_COLLAPSIBLE = frozenset({"prep", "agent", "dative"})


def _coordinator(token: Token) -> Optional[str]:
    """Coordinating word for a conjunct, looked up on its head and then itself."""
    for candidate in (token.head, token):
        for child in candidate.children:
            if child.dep_ == "cc":
                return child.text.lower()
    return None


def _clausal_modifier_label(token: Token) -> str:
    if any(child.dep_ == "aux" and child.tag_ == "TO" for child in token.children):
        return "infmod"
    return "partmod"


def _collapsed_label(token: Token, obj: Token) -> str:
    """``agent`` keeps its label; prepositions (and ``to``-datives) become ``prep_x``/``prepc_x``."""
    if token.dep_ == "agent":
        return "agent"
    return f"{_PREPOSITION_OBJECTS[obj.dep_]}_{token.text.lower()}"


def graph_from_doc(doc: Doc) -> DependencyGraph:
    """Convert a parsed spaCy ``Doc`` into a :class:`DependencyGraph`.

    Whitespace tokens are dropped; the remaining nodes keep their token indices.
    """
    nodes: Dict[int, DependencyNode] = {
        token.i: DependencyNode(token.i, token.text, token.tag_ or token.pos_ or "X", token.lemma_ or "")
        for token in doc
        if not token.text.isspace()
    }
    dependencies: List[Dependency] = []

    for token in doc:
        if token.head.i == token.i or token.i not in nodes or token.head.i not in nodes:
            continue

        head = nodes[token.head.i]
        label = token.dep_

        if label == "cc":
            continue
        if label in _PREPOSITION_OBJECTS and token.head.dep_ in _COLLAPSIBLE:
            continue

        if label in _COLLAPSIBLE:
            objects = [
                child
                for child in token.children
                if child.dep_ in _PREPOSITION_OBJECTS and child.i in nodes
            ]
            if objects:
                for obj in objects:
                    dependencies.append(Dependency(head, nodes[obj.i], _collapsed_label(token, obj)))
                continue
            label = _LABEL_MAP.get(label, label)
        elif label == "conj":
            coordinator = _coordinator(token)
            label = f"conj_{coordinator}" if coordinator else "conj"
        elif label == "acl":
            label = _clausal_modifier_label(token)
        else:
            label = _LABEL_MAP.get(label, label)

        dependencies.append(Dependency(head, nodes[token.i], label))

    return DependencyGraph(nodes.values(), dependencies)


class SpacyGraphParser:
    """Parse raw text with spaCy and convert each sentence to a dependency graph."""

    def __init__(
        self,
        config: Optional[SpacyConfig] = None,
        nlp: Optional[Language] = None,
    ) -> None:
        self.config = config or SpacyConfig()
        self.nlp: Language = nlp or self._load_model(self.config.model)

        logger.info("Initialized SpacyGraphParser", model=self.config.model)

    def parse(self, text: str) -> List[DependencyGraph]:
        """Return one graph per sentence of ``text``."""
        doc = self.nlp(text)
        return [graph_from_doc(sent.as_doc()) for sent in doc.sents]

    def _load_model(self, model_name: str) -> Language:
        try:
            return spacy.load(model_name)
        except OSError as exc:
            raise RuntimeError(
                f"spaCy model '{model_name}' is not installed. "
                f"Install it with `python -m spacy download {model_name}`."
            ) from exc
