from typing import Iterator, List, Optional, Set, Tuple

from ds_pipeline.index import Key, TermIndex, source_identity
from ds_pipeline.registry import candidate_lookups
from ds_pipeline.utils.io import read_tsv


def alias_entries(paths: List[str]) -> Iterator[Tuple[Key, str]]:
    for path in paths:
        for entity, alias in read_tsv(path, columns=2):
            yield (alias,), entity


def build_alias_index(
    paths: List[str],
    cache_dir: Optional[str] = None,
    max_hits: int = 1000,
) -> TermIndex:
    return TermIndex.cached(
        lambda: alias_entries(paths),
        source_identity(paths, kind="alias"),
        cache_dir=cache_dir,
        max_hits=max_hits,
    )


@candidate_lookups.register("index")
class IndexedAliasLookup:
    """Index-backed exact-term alias search over ``entity<TAB>alias`` files."""

    def __init__(
        self,
        path: str,
        cache_dir: Optional[str] = None,
        max_hits: int = 1000,
    ) -> None:
        paths = [path] if isinstance(path, str) else list(path)
        self.index = build_alias_index(paths, cache_dir=cache_dir, max_hits=max_hits)

    def lookup(self, mention: str) -> Set[str]:
        return set(self.index.search((mention,)))
