import logging
from typing import List, Optional, Sequence

from ds_pipeline.mentions import MentionExtractor
from ds_pipeline.types import Mention, SentenceAnnotation, Token

logger = logging.getLogger(__name__)


class SentenceFilter:
    """Length and mention-count admission criteria for candidate sentences."""

    def __init__(self, min_tokens: int = 6, max_tokens: int = 50, min_mentions: int = 2) -> None:
        if min_tokens > max_tokens:
            raise ValueError("min_tokens must not exceed max_tokens")
        self.min_tokens = min_tokens
        self.max_tokens = max_tokens
        self.min_mentions = min_mentions

    def accepts_length(self, tokens: Sequence[Token]) -> bool:
        return self.min_tokens <= len(tokens) <= self.max_tokens

    def accepts_mentions(self, mentions: Sequence[Mention]) -> bool:
        return len(mentions) >= self.min_mentions

    def admit(
        self,
        annotation: SentenceAnnotation,
        extractor: MentionExtractor,
    ) -> Optional[List[Mention]]:
        """Return the sentence mentions if the sentence is usable, else None.

        The token-count check runs first so over- and under-length sentences
        never reach mention extraction.
        """
        if not self.accepts_length(annotation.tokens):
            logger.debug(
                f"Removing sentence with {len(annotation.tokens)} tokens "
                f"(allowed {self.min_tokens}-{self.max_tokens})"
            )
            return None
        mentions = extractor.extract(annotation.tokens, annotation.text)
        if not self.accepts_mentions(mentions):
            logger.debug(f"Removing sentence with {len(mentions)} mentions")
            return None
        return mentions
