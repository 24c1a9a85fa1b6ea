"""Shared fixtures for distant-supervision pipeline tests."""

import json
import os
import tempfile
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple

import pytest

from ds_pipeline.types import (
    DependencyEdge,
    Document,
    Mention,
    Sentence,
    SentenceAnnotation,
    Token,
)
from ds_pipeline.utils.serialization import save_documents


def make_annotation(
    tagged: Sequence[Tuple[str, str]],
    start: int = 0,
    pos: str = "NN",
) -> SentenceAnnotation:
    """Build a SentenceAnnotation from (word, ner) pairs joined by single spaces."""
    tokens: List[Token] = []
    cursor = 0
    for word, ner in tagged:
        if tokens:
            cursor += 1
        tokens.append(Token(text=word, start=cursor, end=cursor + len(word), pos=pos, ner=ner))
        cursor += len(word)
    text = " ".join(word for word, _ in tagged)
    dependencies = [DependencyEdge(label="root", governor=0, dependent=1)] + [
        DependencyEdge(label="dep", governor=1, dependent=i) for i in range(2, len(tokens) + 1)
    ]
    return SentenceAnnotation(
        text=text,
        start=start,
        end=start + len(text),
        tokens=tokens,
        dependencies=dependencies,
    )


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------


SAMPLE_TAGGED = [
    ("John", "PERSON"),
    ("Smith", "PERSON"),
    ("founded", "O"),
    ("Acme", "ORGANIZATION"),
    ("Corp", "ORGANIZATION"),
    ("in", "O"),
    ("Springfield", "LOCATION"),
    ("last", "O"),
    ("year", "O"),
    (".", "O"),
]


@pytest.fixture
def sample_text() -> str:
    """Sentence with a person, an organization and a location."""
    return "John Smith founded Acme Corp in Springfield last year ."


@pytest.fixture
def sample_annotation() -> SentenceAnnotation:
    """Annotation service output for ``sample_text``."""
    return make_annotation(SAMPLE_TAGGED)


@pytest.fixture
def annotation_factory():
    """Expose ``make_annotation`` to tests."""
    return make_annotation


@pytest.fixture
def sample_mentions() -> List[Mention]:
    """Mentions of ``sample_text`` as produced by the mention extractor."""
    return [
        Mention(start=0, end=10, text="John Smith", label="PERSON"),
        Mention(start=19, end=28, text="Acme Corp", label="ORGANIZATION"),
        Mention(start=32, end=43, text="Springfield", label="LOCATION"),
    ]


@pytest.fixture
def sample_aliases() -> Dict[str, Set[str]]:
    """Alias table resolving every sample mention; Springfield is ambiguous."""
    return {
        "John Smith": {"/m/john"},
        "Acme Corp": {"/m/acme"},
        "Springfield": {"/m/spr_il", "/m/spr_ma"},
    }


@pytest.fixture
def sample_facts() -> List[Tuple[str, str, str]]:
    """Known relation facts between sample entities."""
    return [("/m/john", "founded", "/m/acme")]


@pytest.fixture
def sample_sentence(sample_text, sample_mentions, sample_annotation) -> Sentence:
    """Preprocessed sentence with annotation attached and no candidates yet."""
    return Sentence(
        text=sample_text,
        start=0,
        end=len(sample_text),
        mentions=sample_mentions,
        annotation=sample_annotation,
    )


@pytest.fixture
def sample_document(sample_sentence: Sentence) -> Document:
    """Preprocessed document holding ``sample_sentence``."""
    return Document(id="doc-001", sentences=[sample_sentence], meta={"source": "test"})


# ---------------------------------------------------------------------------
# Mock classes
# ---------------------------------------------------------------------------


class MockAnnotator:
    """Annotation service returning predefined annotations per submitted text."""

    def __init__(self, annotations: Optional[Dict[str, List[SentenceAnnotation]]] = None):
        self._annotations = annotations or {}
        self.calls: List[str] = []

    def annotate(self, text: str) -> List[SentenceAnnotation]:
        self.calls.append(text)
        return self._annotations.get(text, [])

    def annotate_sentence(self, text: str) -> SentenceAnnotation:
        self.calls.append(text)
        found = self._annotations.get(text)
        if found:
            return found[0]
        return make_annotation([(word, "O") for word in text.split()])


class FailingAnnotator(MockAnnotator):
    """Annotator that crashes on the texts in ``fail_on``."""

    def __init__(self, annotations=None, fail_on: Iterable[str] = ()):
        super().__init__(annotations)
        self.fail_on = set(fail_on)

    def annotate(self, text: str) -> List[SentenceAnnotation]:
        if text in self.fail_on:
            self.calls.append(text)
            raise RuntimeError("annotation service crashed")
        return super().annotate(text)


class MockCandidateLookup:
    """Alias lookup backed by a dict, recording every query."""

    def __init__(self, aliases: Optional[Dict[str, Iterable[str]]] = None):
        self._aliases = {k: set(v) for k, v in (aliases or {}).items()}
        self.queries: List[str] = []

    def lookup(self, mention: str) -> Set[str]:
        self.queries.append(mention)
        return set(self._aliases.get(mention, ()))


class FailingCandidateLookup:
    """Lookup whose backing store is unavailable."""

    def lookup(self, mention: str) -> Set[str]:
        raise RuntimeError("alias index unavailable")


class MockRelationStore:
    """Relation store backed by a list of facts, recording every query."""

    def __init__(self, facts: Optional[Iterable[Tuple[str, str, str]]] = None):
        self._facts: Dict[Tuple[str, str], Set[str]] = {}
        for e1, relation, e2 in facts or ():
            self._facts.setdefault((e1, e2), set()).add(relation)
        self.queries: List[Tuple[str, str]] = []

    def lookup(self, entity1: str, entity2: str) -> Set[str]:
        self.queries.append((entity1, entity2))
        return set(self._facts.get((entity1, entity2), ()))


class FailingRelationStore:
    """Relation store whose backing index is unavailable."""

    def lookup(self, entity1: str, entity2: str) -> Set[str]:
        raise RuntimeError("relation index unavailable")


# ---------------------------------------------------------------------------
# Mock fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_annotator(sample_text: str, sample_annotation: SentenceAnnotation) -> MockAnnotator:
    """Annotator knowing the sample sentence."""
    return MockAnnotator({sample_text: [sample_annotation]})


@pytest.fixture
def mock_lookup(sample_aliases) -> MockCandidateLookup:
    return MockCandidateLookup(sample_aliases)


@pytest.fixture
def mock_store(sample_facts) -> MockRelationStore:
    return MockRelationStore(sample_facts)


@pytest.fixture
def failing_lookup() -> FailingCandidateLookup:
    return FailingCandidateLookup()


@pytest.fixture
def failing_store() -> FailingRelationStore:
    return FailingRelationStore()


@pytest.fixture
def annotator_cls():
    """MockAnnotator class, for tests needing their own annotations."""
    return MockAnnotator


@pytest.fixture
def failing_annotator_cls():
    return FailingAnnotator


@pytest.fixture
def lookup_cls():
    return MockCandidateLookup


@pytest.fixture
def store_cls():
    return MockRelationStore


# ---------------------------------------------------------------------------
# Temporary file fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def temp_text_file(sample_text: str) -> Iterator[str]:
    """Create a temporary text file with the sample sentence as its only paragraph."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".txt", delete=False) as f:
        f.write(sample_text + "\n")
        path = f.name
    yield path
    os.unlink(path)


@pytest.fixture
def temp_alias_file(sample_aliases) -> Iterator[str]:
    """Alias table in ``entity<TAB>alias`` format."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".tsv", delete=False) as f:
        for alias, entities in sample_aliases.items():
            for entity in sorted(entities):
                f.write(f"{entity}\t{alias}\n")
        path = f.name
    yield path
    os.unlink(path)


@pytest.fixture
def temp_relation_file(sample_facts) -> Iterator[str]:
    """Relation table in ``entity1<TAB>relation<TAB>entity2`` format."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".tsv", delete=False) as f:
        for e1, relation, e2 in sample_facts:
            f.write(f"{e1}\t{relation}\t{e2}\n")
        path = f.name
    yield path
    os.unlink(path)


@pytest.fixture
def temp_documents_file(sample_document: Document) -> Iterator[str]:
    """Preprocessed documents saved as gzip JSON Lines."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = os.path.join(tmpdir, "documents.jsonl.gz")
        save_documents(path, [sample_document])
        yield path


@pytest.fixture
def temp_cache_dir() -> Iterator[str]:
    """Create a temporary cache directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def temp_output_dir() -> Iterator[str]:
    """Create a temporary output directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def minimal_config_dict(sample_aliases, sample_facts, temp_cache_dir: str) -> Dict:
    """Config resuming from preprocessed documents with in-memory fact tables."""
    return {
        "loader": {"name": "annotated", "params": {}},
        "candidate_lookup": {
            "name": "memory",
            "params": {"aliases": {k: sorted(v) for k, v in sample_aliases.items()}},
        },
        "relation_store": {
            "name": "memory",
            "params": {"facts": [list(f) for f in sample_facts]},
        },
        "stages": ["link", "annotate", "compile"],
        "seed": 13,
        "cache_dir": temp_cache_dir,
    }


@pytest.fixture
def temp_config_file(minimal_config_dict: Dict) -> Iterator[str]:
    """Temporary config JSON file for CLI testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
        json.dump(minimal_config_dict, f)
        path = f.name
    yield path
    os.unlink(path)
