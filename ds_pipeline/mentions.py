"""
Mention extraction from a per-token NER tag stream.

Consecutive tokens sharing an accepted NER type are merged into one mention.
Any other tag closes the running span, so "Bank of America" tagged
ORGANIZATION/O/ORGANIZATION yields two mentions, never one.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from ds_pipeline.config import DEFAULT_ENTITY_TYPES
from ds_pipeline.types import Mention, Token

logger = logging.getLogger(__name__)


class MentionExtractor:
    """Builds merged entity-mention spans from tagged tokens."""

    def __init__(self, entity_types: Optional[Iterable[str]] = None) -> None:
        self.entity_types = frozenset(entity_types or DEFAULT_ENTITY_TYPES)

    def extract(self, tokens: Sequence[Token], text: str) -> List[Mention]:
        """
        Scan ``tokens`` left to right and emit one Mention per same-type run.

        Args:
            tokens: Tokens of one sentence, offsets relative to ``text``
            text: Sentence text, used to recover the exact mention substring

        Returns:
            Mentions in sentence order, candidates empty
        """
        mentions: List[Mention] = []
        span_type: Optional[str] = None
        span_start = span_end = 0

        for token in tokens:
            tag = token.ner
            if span_type is not None and tag == span_type:
                span_end = token.end
                continue
            if span_type is not None:
                mentions.append(self._mention(text, span_start, span_end, span_type))
                span_type = None
            if tag in self.entity_types:
                span_type = tag
                span_start, span_end = token.start, token.end

        if span_type is not None:
            mentions.append(self._mention(text, span_start, span_end, span_type))
        return mentions

    @staticmethod
    def _mention(text: str, start: int, end: int, label: str) -> Mention:
        mention = Mention(start=start, end=end, text=text[start:end], label=label)
        logger.debug(f"Entity found: {label} {mention.text}")
        return mention
