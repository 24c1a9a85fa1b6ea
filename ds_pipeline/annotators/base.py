from typing import List, Protocol

from ds_pipeline.types import SentenceAnnotation


class SentenceAnnotator(Protocol):
    """Tokenizes, tags and parses raw text."""

    def annotate(self, text: str) -> List[SentenceAnnotation]:
        """Split ``text`` into annotated sentences."""
        ...

    def annotate_sentence(self, text: str) -> SentenceAnnotation:
        """Annotate ``text`` as a single sentence."""
        ...
