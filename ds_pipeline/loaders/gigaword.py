"""
Gigaword SGML loader.

Gigaword files are a sequence of ``<DOC id=... type=...>`` blocks without a
root element. Only ``type="story"`` documents are kept; each ``<P>`` inside
``<TEXT>`` becomes one paragraph, with offsets relative to the TEXT body.
When ``<TEXT>`` holds no ``<P>`` the whole body is a single paragraph.
"""

import logging
from typing import Iterator, List, Optional

from bs4 import BeautifulSoup

from ds_pipeline.registry import loaders
from ds_pipeline.types import Document, Sentence
from ds_pipeline.utils.io import open_text

logger = logging.getLogger(__name__)


def _paragraphs(body: str, parts: List[str]) -> List[Sentence]:
    paragraphs: List[Sentence] = []
    cursor = 0
    for part in parts:
        stripped = part.strip()
        if not stripped:
            continue
        start = body.find(stripped, cursor)
        if start < 0:
            logger.warning("Paragraph not found in document body, offsets skipped")
            continue
        cursor = start + len(stripped)
        # paragraphs are wrapped at fixed width in the source
        text = " ".join(stripped.split("\n"))
        paragraphs.append(Sentence(text=text, start=start, end=cursor))
    return paragraphs


@loaders.register("gigaword")
class GigawordLoader:
    """Parses Gigaword SGML (plain or gzipped) into story documents."""

    def __init__(self, doc_types: Optional[List[str]] = None) -> None:
        self.doc_types = {t.lower() for t in (doc_types or ["story"])}

    def load(self, path: str) -> Iterator[Document]:
        try:
            with open_text(path) as f:
                soup = BeautifulSoup(f.read(), "lxml")
        except Exception:
            logger.warning(f"Cannot parse {path}, skipping", exc_info=True)
            return

        docs = soup.find_all("doc")
        logger.info(f"{len(docs)} articles found in {path}.")
        for element in docs:
            doc_id = element.get("id")
            doc_type = (element.get("type") or "story").lower()
            if not doc_id or doc_type not in self.doc_types:
                logger.debug(f"Skipping non-story document {doc_id} ({doc_type})")
                continue
            text_element = element.find("text")
            if text_element is None:
                continue
            body = text_element.get_text()
            parts = [p.get_text() for p in text_element.find_all("p")] or [body]
            yield Document(
                id=doc_id,
                sentences=_paragraphs(body, parts),
                meta={"source": path, "type": doc_type},
            )
