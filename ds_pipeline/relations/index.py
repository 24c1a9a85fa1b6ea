from typing import Iterator, List, Optional, Set, Tuple

from ds_pipeline.index import Key, TermIndex, source_identity
from ds_pipeline.registry import relation_stores
from ds_pipeline.utils.io import read_tsv


def relation_entries(paths: List[str]) -> Iterator[Tuple[Key, str]]:
    for path in paths:
        for entity1, relation, entity2 in read_tsv(path, columns=3):
            yield (entity1, entity2), relation


def build_relation_index(
    paths: List[str],
    cache_dir: Optional[str] = None,
    max_hits: int = 1000,
) -> TermIndex:
    return TermIndex.cached(
        lambda: relation_entries(paths),
        source_identity(paths, kind="relation"),
        cache_dir=cache_dir,
        max_hits=max_hits,
    )


@relation_stores.register("index")
class IndexedRelationStore:
    """Index-backed relation search; both ids must match, in order."""

    def __init__(
        self,
        path: str,
        cache_dir: Optional[str] = None,
        max_hits: int = 1000,
    ) -> None:
        paths = [path] if isinstance(path, str) else list(path)
        self.index = build_relation_index(paths, cache_dir=cache_dir, max_hits=max_hits)

    def lookup(self, entity1: str, entity2: str) -> Set[str]:
        return set(self.index.search((entity1, entity2)))
