import hashlib
import logging
import os
import pickle
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from itertools import islice
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

# Ensure component registration by importing modules with registry decorators.
from ds_pipeline import annotators as _annotators_pkg  # noqa: F401
from ds_pipeline import linkers as _linkers_pkg  # noqa: F401
from ds_pipeline import loaders as _loaders_pkg  # noqa: F401
from ds_pipeline import relations as _relations_pkg  # noqa: F401

from .annotators.base import SentenceAnnotator
from .compiler import CompileStats, CorpusCompiler, CorpusWriter, build_instance
from .config import PipelineConfig
from .filters import SentenceFilter
from .linkers.base import CandidateLookup
from .linkers.linker import EntityLinker
from .loaders.base import DocumentLoader
from .mentions import MentionExtractor
from .registry import annotators, candidate_lookups, loaders, relation_stores
from .relations.annotator import RelationAnnotator
from .relations.base import RelationStore
from .types import Document, Sentence, Stage, TrainingInstance
from .utils.io import iter_files
from .utils.serialization import DocumentWriter

logger = logging.getLogger(__name__)

DOCUMENTS_FILE = "documents.jsonl.gz"


class PipelineSetupError(RuntimeError):
    """Fatal setup failure, raised before any document is processed."""


class DistantSupervisionPipeline:
    """Orchestrates preprocessing, linking, relation annotation and compilation."""

    def __init__(
        self,
        config: PipelineConfig,
        annotator: Optional[SentenceAnnotator] = None,
        lookup: Optional[CandidateLookup] = None,
        store: Optional[RelationStore] = None,
    ) -> None:
        self.config = config
        self.stages = [s for s in Stage if s in set(config.stages)]
        self.cache_dir = Path(config.cache_dir)

        self.loader: DocumentLoader = loaders.create(config.loader.name, **config.loader.params)

        self.annotator = annotator
        if self.annotator is None and config.annotator:
            self.annotator = annotators.create(config.annotator.name, **config.annotator.params)

        if lookup is None and config.candidate_lookup:
            lookup = candidate_lookups.create(
                config.candidate_lookup.name, **config.candidate_lookup.params
            )

        if store is None and config.relation_store:
            store = relation_stores.create(config.relation_store.name, **config.relation_store.params)

        self.extractor = MentionExtractor(config.entity_types)
        self.sentence_filter = SentenceFilter(
            min_tokens=config.filter.min_tokens,
            max_tokens=config.filter.max_tokens,
            min_mentions=config.filter.min_mentions,
        )
        self.linker = None
        if lookup is not None:
            self.linker = EntityLinker(lookup, min_linked_mentions=config.filter.min_mentions)
        self.relation_annotator = RelationAnnotator(store) if store is not None else None
        self.compiler = CorpusCompiler(
            negative_proportion=config.negative_proportion,
            seed=config.seed,
        )
        self._check_components()

    def _check_components(self) -> None:
        missing = []
        if Stage.PREPROCESS in self.stages and self.annotator is None:
            missing.append("annotator")
        if Stage.LINK in self.stages and self.linker is None:
            missing.append("candidate_lookup")
        if Stage.ANNOTATE in self.stages and self.relation_annotator is None:
            missing.append("relation_store")
        if missing:
            raise ValueError(f"Configured stages require: {', '.join(missing)}")

    def _cache_key(self, path: str) -> str:
        stat = os.stat(path)
        raw = f"{self.config.loader.name}-{path}-{stat.st_mtime}-{stat.st_size}".encode()
        return hashlib.sha256(raw).hexdigest()

    def _load_with_cache(self, path: str) -> Iterator[Document]:
        key = self._cache_key(path)
        cache_file = self.cache_dir / f"{key}.pkl"
        if cache_file.exists():
            with cache_file.open("rb") as f:
                cached = pickle.load(f)
            for doc in cached:
                yield doc
            return

        docs = list(self.loader.load(path))
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        with cache_file.open("wb") as f:
            pickle.dump(docs, f)
        for doc in docs:
            yield doc

    def load(self, paths: Iterable[str]) -> Iterator[Document]:
        """Load documents from files, expanding directories recursively."""
        for path in paths:
            for file_path in iter_files(path):
                logger.info(f"Adding {file_path}")
                yield from self._load_with_cache(str(file_path))

    def preprocess(self, doc: Document) -> Document:
        """Split paragraphs into sentences and keep those with enough mentions."""
        sentences: List[Sentence] = []
        for paragraph in doc.sentences:
            for annotation in self.annotator.annotate(paragraph.text):
                mentions = self.sentence_filter.admit(annotation, self.extractor)
                if mentions is None:
                    continue
                sentences.append(
                    Sentence(
                        text=annotation.text,
                        start=paragraph.start + annotation.start,
                        end=paragraph.start + annotation.end,
                        mentions=mentions,
                        annotation=annotation,
                    )
                )
        return Document(id=doc.id, sentences=sentences, meta=doc.meta)

    def link(self, doc: Document) -> Document:
        return self.linker.link(doc)

    def annotate(self, doc: Document) -> Document:
        return self.relation_annotator.annotate(doc)

    def process_document(self, doc: Document) -> Optional[Document]:
        """Run the configured per-document stages; None once the document is empty or fails."""
        steps = [
            (Stage.PREPROCESS, self.preprocess),
            (Stage.LINK, self.link),
            (Stage.ANNOTATE, self.annotate),
        ]
        doc_id = doc.id
        try:
            for stage, step in steps:
                if stage not in self.stages:
                    continue
                doc = step(doc)
                if doc.is_empty:
                    logger.debug(f"Removing document {doc.id} after {stage.value} (no valid sentences)")
                    return None
        except Exception:
            logger.warning(f"Failed to process document {doc_id}, skipping", exc_info=True)
            return None
        return doc

    def _process_all(self, docs: Iterator[Document]) -> Iterator[Document]:
        """Yield processed documents in input order, holding at most one batch in flight."""
        workers = self.config.workers
        if workers <= 1:
            for doc in map(self.process_document, docs):
                if doc is not None:
                    yield doc
            return
        with ThreadPoolExecutor(max_workers=workers) as pool:
            while True:
                batch = list(islice(docs, workers * 4))
                if not batch:
                    break
                for doc in pool.map(self.process_document, batch):
                    if doc is not None:
                        yield doc

    def instances(self, doc: Document) -> List[TrainingInstance]:
        """Package each sentence of ``doc`` as a TrainingInstance."""
        result = []
        for index, sentence in enumerate(doc.sentences):
            annotation = sentence.annotation
            if annotation is None:
                if self.annotator is None:
                    raise ValueError(
                        f"Sentence {doc.id}.{index} has no annotation and no annotator is configured"
                    )
                annotation = self.annotator.annotate_sentence(sentence.text)
            result.append(build_instance(doc.id, index, sentence, annotation))
        return result

    def _prepare_output(self, output_dir: str) -> None:
        try:
            Path(output_dir).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise PipelineSetupError(f"Unable to create directory {output_dir}") from exc
        if not Path(output_dir).is_dir():
            raise PipelineSetupError(f"Output path {output_dir} must be a directory")

    def run(
        self,
        paths: Iterable[str],
        output_dir: str,
        documents_dir: Optional[str] = None,
    ) -> CompileStats:
        """
        Process input files and write the training corpus.

        Documents are compiled and written as soon as they are processed,
        so memory use does not grow with the corpus.

        Args:
            paths: Input files or directories
            output_dir: Directory receiving the corpus streams
            documents_dir: Optional directory receiving the processed documents

        Returns:
            Compilation counts (empty when the compile stage is not configured)
        """
        self._prepare_output(output_dir)
        if documents_dir:
            self._prepare_output(documents_dir)

        stats = CompileStats()
        kept = 0
        with ExitStack() as stack:
            writer = None
            if Stage.COMPILE in self.stages:
                logger.info(f"Outputting MultiR format to {output_dir}")
                writer = stack.enter_context(CorpusWriter(output_dir))
            doc_writer = None
            if documents_dir:
                doc_writer = stack.enter_context(
                    DocumentWriter(Path(documents_dir) / DOCUMENTS_FILE)
                )

            for doc in self._process_all(self.load(paths)):
                kept += 1
                if doc_writer is not None:
                    doc_writer.write(doc)
                if writer is not None:
                    stats.merge(self._compile_document(doc, writer))

        logger.info(f"{kept} documents with valid sentences")
        if Stage.COMPILE in self.stages:
            logger.info(
                f"Wrote {stats.rows} rows ({stats.positives} positive, {stats.negatives} negative) "
                f"from {stats.instances} sentences"
            )
        return stats

    def _compile_document(self, doc: Document, writer: CorpusWriter) -> CompileStats:
        return self.compiler.compile(self.instances(doc), writer)
