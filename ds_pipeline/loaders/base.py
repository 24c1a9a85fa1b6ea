from typing import Iterator, Protocol

from ds_pipeline.types import Document


class DocumentLoader(Protocol):
    """Loads documents from a path, one Sentence per unsplit paragraph."""

    def load(self, path: str) -> Iterator[Document]:
        ...
