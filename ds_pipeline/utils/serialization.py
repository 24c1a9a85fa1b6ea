"""
Gzip-compressed JSON Lines persistence for annotated documents.

Lets a run save its documents after any stage and a later run resume from
them with the ``annotated`` loader.
"""

import gzip
import itertools
import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, TextIO

from ds_pipeline.types import (
    DependencyEdge,
    Document,
    Mention,
    RelationAnnotation,
    Sentence,
    SentenceAnnotation,
    Token,
)
from ds_pipeline.utils.io import PathLike, open_text

logger = logging.getLogger(__name__)


def document_to_dict(doc: Document) -> Dict[str, Any]:
    data = asdict(doc)
    for sentence in data["sentences"]:
        for mention in sentence["mentions"]:
            mention["candidates"] = sorted(mention["candidates"])
        for relation in sentence["relations"]:
            relation["relations"] = list(relation["relations"])
    return data


def _annotation_from_dict(data: Optional[Dict[str, Any]]) -> Optional[SentenceAnnotation]:
    if data is None:
        return None
    return SentenceAnnotation(
        text=data["text"],
        start=data["start"],
        end=data["end"],
        tokens=[Token(**t) for t in data.get("tokens", [])],
        dependencies=[DependencyEdge(**d) for d in data.get("dependencies", [])],
    )


def document_from_dict(data: Dict[str, Any]) -> Document:
    sentences = []
    for item in data.get("sentences", []):
        mentions = [
            Mention(
                start=m["start"],
                end=m["end"],
                text=m["text"],
                label=m.get("label"),
                candidates=set(m.get("candidates", [])),
            )
            for m in item.get("mentions", [])
        ]
        relations = [
            RelationAnnotation(**{**r, "relations": tuple(r.get("relations", []))})
            for r in item.get("relations", [])
        ]
        sentences.append(
            Sentence(
                text=item["text"],
                start=item["start"],
                end=item["end"],
                mentions=mentions,
                relations=relations,
                annotation=_annotation_from_dict(item.get("annotation")),
            )
        )
    return Document(id=data["id"], sentences=sentences, meta=data.get("meta", {}))


class DocumentWriter:
    """Appends documents to a gzip JSON Lines file, one document per line."""

    def __init__(self, path: PathLike) -> None:
        self.path = Path(path)
        self._handle: Optional[TextIO] = None
        self.count = 0

    def open(self) -> "DocumentWriter":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._handle = gzip.open(self.path, "wt", encoding="utf-8")
        return self

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None
            logger.info(f"Saved {self.count} documents to {self.path}")

    def __enter__(self) -> "DocumentWriter":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def write(self, doc: Document) -> None:
        self._handle.write(json.dumps(document_to_dict(doc), ensure_ascii=False) + "\n")
        self.count += 1


def save_documents(path: PathLike, docs: Iterable[Document]) -> int:
    """Write documents as gzip JSON Lines, creating parent directories. Returns the count."""
    with DocumentWriter(path) as writer:
        for doc in docs:
            writer.write(doc)
    return writer.count


def iter_documents(path: PathLike) -> Iterator[Document]:
    """
    Stream documents written by ``save_documents``.

    Plain (uncompressed) files are accepted too, as is a single JSON array
    holding the whole collection.
    """
    with open_text(path) as f:
        first = f.read(1)
        while first and first.isspace():
            first = f.read(1)
        if first == "[":
            for item in json.loads(first + f.read()):
                yield document_from_dict(item)
            return
        lines = itertools.chain([first + f.readline()], f)
        for line in lines:
            if line.strip():
                yield document_from_dict(json.loads(line))


def load_documents(path: PathLike) -> List[Document]:
    return list(iter_documents(path))
