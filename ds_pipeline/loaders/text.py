import json
import logging
import re
from pathlib import Path
from typing import Iterator, List

from ds_pipeline.registry import loaders
from ds_pipeline.types import Document, Sentence
from ds_pipeline.utils.io import open_text

logger = logging.getLogger(__name__)

PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


def split_paragraphs(text: str) -> List[Sentence]:
    """Split on blank lines, keeping each paragraph's offsets into ``text``."""
    paragraphs: List[Sentence] = []
    cursor = 0
    for chunk in PARAGRAPH_BREAK.split(text):
        start = text.find(chunk, cursor)
        cursor = start + len(chunk)
        stripped = chunk.strip()
        if not stripped:
            continue
        start += chunk.index(stripped)
        paragraphs.append(Sentence(text=stripped, start=start, end=start + len(stripped)))
    return paragraphs


def _stem(path: str) -> str:
    return Path(path).name.split(".")[0]


@loaders.register("text")
class TextLoader:
    """Loads plain text files (optionally gzipped); paragraphs split on blank lines."""

    def load(self, path: str) -> Iterator[Document]:
        try:
            with open_text(path) as f:
                text = f.read()
        except (OSError, EOFError, UnicodeDecodeError):
            logger.warning(f"Cannot read {path}, skipping", exc_info=True)
            return
        yield Document(id=_stem(path), sentences=split_paragraphs(text), meta={"source": path})


@loaders.register("jsonl")
class JSONLLoader:
    """Loads JSONL where each line has a `text` field."""

    def __init__(self, text_field: str = "text") -> None:
        self.text_field = text_field

    def load(self, path: str) -> Iterator[Document]:
        try:
            yield from self._load_lines(path)
        except (OSError, EOFError, UnicodeDecodeError):
            logger.warning(f"Cannot read {path}, skipping the rest of the file", exc_info=True)

    def _load_lines(self, path: str) -> Iterator[Document]:
        with open_text(path) as f:
            for i, line in enumerate(f):
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed line {i} in {path}")
                    continue
                if not isinstance(data, dict):
                    logger.warning(f"Skipping line {i} in {path}: not a JSON object")
                    continue
                text = data.get(self.text_field, "")
                if not isinstance(text, str):
                    logger.warning(f"Skipping line {i} in {path}: `{self.text_field}` is not a string")
                    continue
                doc_id = data.get("id") or f"{_stem(path)}-{i}"
                meta = {k: v for k, v in data.items() if k != self.text_field}
                yield Document(
                    id=str(doc_id),
                    sentences=split_paragraphs(text),
                    meta={"source": path, **meta},
                )
