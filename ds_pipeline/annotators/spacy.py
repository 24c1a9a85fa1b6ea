"""
spaCy-backed annotation service.

Produces tokens with fine-grained POS tags, NER tags mapped onto the
PERSON/ORGANIZATION/LOCATION vocabulary, sentence-relative character offsets
and 1-based dependency edges.
"""

import logging
from typing import Dict, List, Optional, Sequence

import spacy
from spacy.tokens import Span

from ds_pipeline.registry import annotators
from ds_pipeline.types import DependencyEdge, SentenceAnnotation, Token

logger = logging.getLogger(__name__)

DEFAULT_LABEL_MAP: Dict[str, str] = {
    "PERSON": "PERSON",
    "PER": "PERSON",
    "ORG": "ORGANIZATION",
    "GPE": "LOCATION",
    "LOC": "LOCATION",
    "FAC": "LOCATION",
}


@annotators.register("spacy")
class SpacyAnnotator:
    """spaCy tokenization, tagging, NER and dependency parsing."""

    def __init__(
        self,
        model: str = "en_core_web_sm",
        label_map: Optional[Dict[str, str]] = None,
        disable: Sequence[str] = ("textcat",),
        nlp=None,
    ) -> None:
        self.nlp = nlp if nlp is not None else spacy.load(model, disable=list(disable))
        self.label_map = dict(DEFAULT_LABEL_MAP if label_map is None else label_map)
        pipe_names = list(getattr(self.nlp, "pipe_names", []))
        if not {"parser", "senter", "sentencizer"} & set(pipe_names):
            logger.info("No sentence boundary component found, adding sentencizer")
            self.nlp.add_pipe("sentencizer", first=True)

    def _ner_tag(self, token) -> str:
        if not token.ent_type_:
            return "O"
        return self.label_map.get(token.ent_type_, token.ent_type_)

    def _annotation(self, span: Span) -> SentenceAnnotation:
        offset = span.start_char
        # whitespace tokens are dropped; indices are 1-based over the kept tokens
        kept = [token for token in span if not token.is_space]
        positions = {token.i: n for n, token in enumerate(kept, start=1)}
        tokens = [
            Token(
                text=token.text,
                start=token.idx - offset,
                end=token.idx + len(token.text) - offset,
                pos=token.tag_,
                ner=self._ner_tag(token),
            )
            for token in kept
        ]
        roots: List[DependencyEdge] = []
        edges: List[DependencyEdge] = []
        for token in kept:
            index = positions[token.i]
            governor = positions.get(token.head.i)
            if token.head.i == token.i or token.dep_ == "ROOT" or governor is None:
                roots.append(DependencyEdge(label="root", governor=0, dependent=index))
            else:
                edges.append(DependencyEdge(label=token.dep_, governor=governor, dependent=index))
        return SentenceAnnotation(
            text=span.text,
            start=span.start_char,
            end=span.end_char,
            tokens=tokens,
            dependencies=roots + edges,
        )

    def annotate(self, text: str) -> List[SentenceAnnotation]:
        doc = self.nlp(text)
        return [self._annotation(sent) for sent in doc.sents]

    def annotate_sentence(self, text: str) -> SentenceAnnotation:
        doc = self.nlp(text)
        return self._annotation(doc[:])
