"""
MultiR training-corpus compilation.

Each retained relation example becomes one row in every output stream; row i
of every stream describes the same example. Stream layouts (tab-separated):

    sentences.meta              sentenceID  documentID  tok1 tok2 ...
    SENTTEXTINFORMATION         sentenceID  sentence text
    SENTOFFSETINFORMATION       sentenceID  docStart docEnd
    TOKENOFFSETINFORMATION      sentenceID  s1:e1 s2:e2 ...
    TOKENPOSINFORMATION         sentenceID  pos1 pos2 ...
    TOKENNERINFORMATION         sentenceID  ner1 ner2 ...
    SENTDEPENDENCYINFORMATION   sentenceID  gov label dep|gov label dep ...
    training.inst               e1 e1Start e1End e1Text e2 e2Start e2End e2Text sentenceID relation
"""

import logging
import random
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, TextIO

from ds_pipeline.types import (
    DependencyEdge,
    RelationAnnotation,
    Sentence,
    SentenceAnnotation,
    TrainingInstance,
)

logger = logging.getLogger(__name__)

NEGATIVE_LABEL = "NA"
MENTION_PLACEHOLDER = " "

STREAM_FILES: Dict[str, str] = {
    "meta": "sentences.meta",
    "text": "SENTTEXTINFORMATION",
    "sentence_offset": "SENTOFFSETINFORMATION",
    "token_offset": "TOKENOFFSETINFORMATION",
    "token_pos": "TOKENPOSINFORMATION",
    "token_ner": "TOKENNERINFORMATION",
    "dependency": "SENTDEPENDENCYINFORMATION",
    "instance": "training.inst",
}


def _clean(value: str) -> str:
    # same-length replacement keeps character offsets valid
    return value.replace("\r", " ").replace("\n", " ").replace("\t", " ")


def _mention_text(text: str, start: int, end: int) -> str:
    if not 0 <= start <= end <= len(text):
        logger.warning(f"Incorrect span [{start}, {end}) given for mention")
        return MENTION_PLACEHOLDER
    return text[start:end]


def relation_rows(
    relation: RelationAnnotation,
    text: str,
    sentence_id: str,
) -> List[str]:
    """One instance row per relation label, or a single NA row for a negative."""
    prefix = "\t".join(
        [
            relation.entity1,
            str(relation.e1_start),
            str(relation.e1_end),
            _clean(_mention_text(text, relation.e1_start, relation.e1_end)),
            relation.entity2,
            str(relation.e2_start),
            str(relation.e2_end),
            _clean(_mention_text(text, relation.e2_start, relation.e2_end)),
            sentence_id,
        ]
    )
    labels = relation.relations or (NEGATIVE_LABEL,)
    return [f"{prefix}\t{label}" for label in labels]


def build_instance(
    document_id: str,
    sentence_index: int,
    sentence: Sentence,
    annotation: SentenceAnnotation,
) -> TrainingInstance:
    """Package a sentence's annotation output with its positive and negative rows."""
    instance = TrainingInstance(
        document_id=document_id,
        sentence_index=sentence_index,
        text=sentence.text,
        start=sentence.start,
        end=sentence.end,
        tokens=list(annotation.tokens),
        dependencies=list(annotation.dependencies),
    )
    for relation in sentence.relations:
        rows = relation_rows(relation, sentence.text, instance.sentence_id)
        if relation.is_negative:
            instance.negatives.extend(rows)
        else:
            instance.positives.extend(rows)
    return instance


def _dependency_column(edges: List[DependencyEdge]) -> str:
    return "|".join(f"{e.governor} {e.label} {e.dependent}" for e in edges)


def shared_columns(instance: TrainingInstance) -> Dict[str, str]:
    """Per-stream row content shared by every relation row of ``instance``."""
    sid = instance.sentence_id
    tokens = instance.tokens
    return {
        "meta": f"{sid}\t{instance.document_id}\t" + " ".join(_clean(t.text) for t in tokens),
        "text": f"{sid}\t{_clean(instance.text)}",
        "sentence_offset": f"{sid}\t{instance.start} {instance.end}",
        "token_offset": f"{sid}\t" + " ".join(f"{t.start}:{t.end}" for t in tokens),
        "token_pos": f"{sid}\t" + " ".join(t.pos or "_" for t in tokens),
        "token_ner": f"{sid}\t" + " ".join(t.ner or "O" for t in tokens),
        "dependency": f"{sid}\t{_dependency_column(instance.dependencies)}",
    }


class CorpusWriter:
    """Row-aligned output streams; one lock guards each instance block."""

    def __init__(self, output_dir: str) -> None:
        self.output_dir = Path(output_dir)
        self._lock = threading.Lock()
        self._streams: Dict[str, TextIO] = {}
        self.rows_written = 0

    def open(self) -> "CorpusWriter":
        self.output_dir.mkdir(parents=True, exist_ok=True)
        try:
            for stream, filename in STREAM_FILES.items():
                self._streams[stream] = (self.output_dir / filename).open("w", encoding="utf-8")
        except OSError:
            self.close()
            raise
        return self

    def close(self) -> None:
        for handle in self._streams.values():
            handle.close()
        self._streams = {}

    def __enter__(self) -> "CorpusWriter":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()

    def write(self, instance: TrainingInstance, rows: List[str]) -> None:
        if not rows:
            return
        shared = shared_columns(instance)
        with self._lock:
            for row in rows:
                for stream, content in shared.items():
                    self._streams[stream].write(content + "\n")
                self._streams["instance"].write(row + "\n")
            self.rows_written += len(rows)


@dataclass
class CompileStats:
    """Counts gathered while compiling a corpus."""

    instances: int = 0
    skipped: int = 0
    positives: int = 0
    negatives: int = 0

    @property
    def rows(self) -> int:
        return self.positives + self.negatives

    def merge(self, other: "CompileStats") -> None:
        self.instances += other.instances
        self.skipped += other.skipped
        self.positives += other.positives
        self.negatives += other.negatives


class CorpusCompiler:
    """
    Selects training rows with negatives thinned to a bounded ratio.

    Sentences without positives emit nothing. Otherwise up to
    ``positives * negative_proportion`` negatives are kept: when there are at
    least that many, each is accepted with probability 1/odds, where
    ``odds = negatives // neg_max``, until the bound is reached. The thinning
    is probabilistic and can fall short of the bound.
    """

    def __init__(
        self,
        negative_proportion: int = 4,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        if negative_proportion < 0:
            raise ValueError("negative_proportion must be >= 0")
        self.negative_proportion = negative_proportion
        self.rng = rng or random.Random(seed)
        self._rng_lock = threading.Lock()

    def sample_negatives(self, negatives: List[str], neg_max: int) -> List[str]:
        if neg_max <= 0:
            return []
        odds = len(negatives) // neg_max if len(negatives) >= neg_max else 1
        taken: List[str] = []
        with self._rng_lock:
            for negative in negatives:
                if len(taken) >= neg_max:
                    break
                if self.rng.randrange(odds) == 0:
                    taken.append(negative)
        return taken

    def select_rows(self, instance: TrainingInstance) -> List[str]:
        positive_count = len(instance.positives)
        logger.debug(
            f"{instance.sentence_id}: {positive_count} positive, "
            f"{len(instance.negatives)} negative examples"
        )
        if positive_count == 0:
            return []
        neg_max = positive_count * self.negative_proportion
        negatives = self.sample_negatives(instance.negatives, neg_max)
        logger.debug(f"{len(negatives)} negative examples taken (max {neg_max})")
        return list(instance.positives) + negatives

    def compile_instance(self, instance: TrainingInstance, writer: CorpusWriter) -> CompileStats:
        stats = CompileStats(instances=1)
        rows = self.select_rows(instance)
        if not rows:
            stats.skipped = 1
            return stats
        writer.write(instance, rows)
        stats.positives = len(instance.positives)
        stats.negatives = len(rows) - len(instance.positives)
        return stats

    def compile(self, instances: Iterable[TrainingInstance], writer: CorpusWriter) -> CompileStats:
        stats = CompileStats()
        for instance in instances:
            stats.merge(self.compile_instance(instance, writer))
        return stats
