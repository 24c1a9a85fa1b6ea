import logging
from typing import Iterator

from ds_pipeline.registry import loaders
from ds_pipeline.types import Document
from ds_pipeline.utils.serialization import iter_documents

logger = logging.getLogger(__name__)


@loaders.register("annotated")
class AnnotatedLoader:
    """Streams documents saved by a previous pipeline run."""

    def load(self, path: str) -> Iterator[Document]:
        count = 0
        try:
            for doc in iter_documents(path):
                count += 1
                yield doc
        except (OSError, EOFError, ValueError, KeyError, TypeError):
            logger.warning(
                f"Cannot read annotated documents from {path} after {count} docs, skipping the rest",
                exc_info=True,
            )
            return
        logger.info(f"{count} docs loaded from {path}")
