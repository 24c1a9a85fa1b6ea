import logging
from dataclasses import replace
from typing import Dict, List, Optional, Set

from ds_pipeline.linkers.base import CandidateLookup
from ds_pipeline.types import Document, Mention, Sentence

logger = logging.getLogger(__name__)


class EntityLinker:
    """
    Attaches candidate entity ids to mentions.

    Mentions without candidates are dropped from their sentence, and a
    sentence left with fewer than ``min_linked_mentions`` linked mentions is
    dropped from its document. Ambiguous mentions keep every candidate.
    """

    def __init__(self, lookup: CandidateLookup, min_linked_mentions: int = 2) -> None:
        self.lookup = lookup
        self.min_linked_mentions = min_linked_mentions

    def candidates_for(self, mention: str) -> Set[str]:
        """Query the lookup; a failing lookup counts as no candidates."""
        try:
            return set(self.lookup.lookup(mention))
        except Exception:
            logger.warning(f"Candidate lookup failed for '{mention}'", exc_info=True)
            return set()

    def link_sentence(self, sentence: Sentence) -> Optional[Sentence]:
        # the lookup only sees surface strings, so query each one once
        found: Dict[str, Set[str]] = {
            text: self.candidates_for(text) for text in sentence.mentions_by_text()
        }
        linked: List[Mention] = []
        for mention in sentence.mentions:
            candidates = found[mention.text]
            if not candidates:
                logger.debug(f"No candidates for '{mention.text}', removing mention")
                continue
            linked.append(replace(mention, candidates=set(candidates)))
        if len(linked) < self.min_linked_mentions:
            return None
        return replace(sentence, mentions=linked)

    def link(self, doc: Document) -> Document:
        """Return ``doc`` rebuilt from its linkable sentences."""
        logger.debug(f"Linking {doc.id}")
        sentences = []
        for sentence in doc.sentences:
            linked = self.link_sentence(sentence)
            if linked is not None:
                sentences.append(linked)
        return replace(doc, sentences=sentences)
