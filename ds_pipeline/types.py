from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class Stage(str, Enum):
    """Pipeline stages, in execution order."""

    PREPROCESS = "preprocess"
    LINK = "link"
    ANNOTATE = "annotate"
    COMPILE = "compile"


@dataclass
class Token:
    """Single token from the annotation service."""

    text: str
    start: int
    end: int
    pos: str = ""
    ner: str = "O"


@dataclass
class DependencyEdge:
    """Dependency edge; token indices are 1-based, governor 0 marks a root."""

    label: str
    governor: int
    dependent: int


@dataclass
class SentenceAnnotation:
    """Annotation service output for one sentence.

    Token offsets are relative to the sentence text; ``start``/``end`` are
    relative to the string that was submitted for annotation.
    """

    text: str
    start: int
    end: int
    tokens: List[Token] = field(default_factory=list)
    dependencies: List[DependencyEdge] = field(default_factory=list)


@dataclass
class Mention:
    """Entity mention span within a sentence."""

    start: int
    end: int
    text: str
    label: Optional[str] = None
    candidates: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class RelationAnnotation:
    """Ordered entity pair labeled with known relations (empty means NA)."""

    entity1: str
    e1_start: int
    e1_end: int
    entity2: str
    e2_start: int
    e2_end: int
    relations: Tuple[str, ...] = ()

    @property
    def is_negative(self) -> bool:
        return not self.relations


@dataclass
class Sentence:
    """Sentence (or unsplit paragraph) with document-relative offsets."""

    text: str
    start: int
    end: int
    mentions: List[Mention] = field(default_factory=list)
    relations: List[RelationAnnotation] = field(default_factory=list)
    annotation: Optional[SentenceAnnotation] = None

    def mentions_by_text(self) -> Dict[str, List[Mention]]:
        """Group mentions by surface string, keeping sentence order."""
        grouped: Dict[str, List[Mention]] = {}
        for mention in self.mentions:
            grouped.setdefault(mention.text, []).append(mention)
        return grouped


@dataclass
class Document:
    """Single document item."""

    id: str
    sentences: List[Sentence] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.sentences


@dataclass
class TrainingInstance:
    """One sentence worth of corpus rows, shared columns plus relation rows."""

    document_id: str
    sentence_index: int
    text: str
    start: int
    end: int
    tokens: List[Token] = field(default_factory=list)
    dependencies: List[DependencyEdge] = field(default_factory=list)
    positives: List[str] = field(default_factory=list)
    negatives: List[str] = field(default_factory=list)

    @property
    def sentence_id(self) -> str:
        return f"{self.document_id}.{self.sentence_index}"
