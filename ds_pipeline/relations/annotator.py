"""
Distant-supervision relation triage.

For every ordered mention pair in a sentence, every candidate combination is
checked against the relation store. A pair yielding any relation contributes
only positive annotations; a pair yielding none contributes exactly one
negative annotation built from the first candidate combination tried.
Direction matters: (m1, m2) and (m2, m1) are separate pairs.
"""

import logging
from dataclasses import replace
from typing import List, Set

from ds_pipeline.relations.base import RelationStore
from ds_pipeline.types import Document, Mention, RelationAnnotation, Sentence

logger = logging.getLogger(__name__)


class RelationAnnotator:
    """Labels ordered mention pairs as positive or negative examples."""

    def __init__(self, store: RelationStore) -> None:
        self.store = store

    def relations_for(self, entity1: str, entity2: str) -> Set[str]:
        """Query the store; a failing query counts as no relation."""
        try:
            return set(self.store.lookup(entity1, entity2))
        except Exception:
            logger.warning(
                f"Relation lookup failed for ({entity1}, {entity2})", exc_info=True
            )
            return set()

    def annotate_pair(self, mention1: Mention, mention2: Mention) -> List[RelationAnnotation]:
        """
        Annotate one ordered mention pair.

        Args:
            mention1: Mention in the entity1 role
            mention2: Mention in the entity2 role

        Returns:
            Every positive annotation found across all candidate combinations,
            or a single negative annotation when none was found
        """
        positives: List[RelationAnnotation] = []
        negative = None
        for e1 in sorted(mention1.candidates):
            for e2 in sorted(mention2.candidates):
                relations = self.relations_for(e1, e2)
                logger.debug(f"{len(relations)} hits found for {e1} and {e2}")
                annotation = RelationAnnotation(
                    entity1=e1,
                    e1_start=mention1.start,
                    e1_end=mention1.end,
                    entity2=e2,
                    e2_start=mention2.start,
                    e2_end=mention2.end,
                    relations=tuple(sorted(relations)),
                )
                if relations:
                    positives.append(annotation)
                elif negative is None:
                    negative = annotation
        if positives:
            return positives
        return [negative] if negative is not None else []

    def annotate_sentence(self, sentence: Sentence) -> Sentence:
        annotations: List[RelationAnnotation] = []
        mentions = sentence.mentions
        for i, mention1 in enumerate(mentions):
            for j, mention2 in enumerate(mentions):
                if i == j:
                    continue
                annotations.extend(self.annotate_pair(mention1, mention2))
        return replace(sentence, relations=annotations)

    def annotate(self, doc: Document) -> Document:
        logger.debug(f"Finding relations in {doc.id}")
        return replace(doc, sentences=[self.annotate_sentence(s) for s in doc.sentences])
