"""
Term index backing the index-based candidate and relation lookups.

Each entry is a key (tuple of exact strings) and a stored value. Retrieval
scores entries with rank-bm25 over the key terms, then keeps only entries
whose key equals the query exactly. The built index is pickled into the
cache directory under a hash of its sources so later runs reuse it.
"""

import hashlib
import logging
import os
import pickle
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
from rank_bm25 import BM25Okapi

from ds_pipeline.utils.io import PathLike, iter_files

logger = logging.getLogger(__name__)

Key = Tuple[str, ...]


def _tokenize(key: Sequence[str]) -> List[str]:
    return [term for part in key for term in part.lower().split()]


def source_identity(paths: Iterable[PathLike], kind: str) -> str:
    """Hash of source paths plus their mtime and size, for cache invalidation."""
    parts = [kind]
    for path in paths:
        for file_path in iter_files(path):
            stat = os.stat(file_path)
            parts.append(f"{file_path}:{stat.st_mtime}:{stat.st_size}")
    return hashlib.sha256("|".join(parts).encode()).hexdigest()


class TermIndex:
    """Exact-key search over a rank-bm25 index."""

    def __init__(self, entries: Iterable[Tuple[Key, str]], max_hits: int = 1000) -> None:
        self.keys: List[Key] = []
        self.values: List[str] = []
        for key, value in entries:
            self.keys.append(tuple(key))
            self.values.append(value)
        self.max_hits = max_hits
        corpus = [_tokenize(key) for key in self.keys]
        # BM25Okapi cannot be built over an empty corpus
        self.bm25: Optional[BM25Okapi] = BM25Okapi(corpus) if corpus else None
        logger.info(f"Term index built over {len(self.keys)} entries")

    def __len__(self) -> int:
        return len(self.keys)

    def search(self, key: Sequence[str]) -> List[str]:
        """Return the values stored under exactly ``key``, best score first."""
        if self.bm25 is None:
            return []
        query = tuple(key)
        terms = _tokenize(query)
        if not terms:
            return []
        scores = self.bm25.get_scores(terms)
        top_indices = np.argsort(scores)[::-1][: self.max_hits]
        hits = [self.values[idx] for idx in top_indices if self.keys[idx] == query]
        logger.debug(f"{len(hits)} hits found for {query}")
        return hits

    @classmethod
    def cached(
        cls,
        entries_factory,
        identity: str,
        cache_dir: Optional[PathLike] = None,
        max_hits: int = 1000,
    ) -> "TermIndex":
        """
        Load the index for ``identity`` from the cache, or build and cache it.

        Args:
            entries_factory: Zero-argument callable producing (key, value) pairs
            identity: Hash identifying the index sources
            cache_dir: Directory holding pickled indexes; None disables caching
            max_hits: Maximum entries scored per query
        """
        cache_file = None
        if cache_dir:
            idx_dir = Path(cache_dir) / "index"
            idx_dir.mkdir(parents=True, exist_ok=True)
            cache_file = idx_dir / f"terms_{identity}.pkl"
            try:
                if cache_file.exists():
                    with cache_file.open("rb") as f:
                        index = pickle.load(f)
                    index.max_hits = max_hits
                    logger.info(f"Loaded term index from cache ({identity[:12]})")
                    return index
            except Exception:
                logger.warning("Term index cache load failed, will rebuild", exc_info=True)

        index = cls(entries_factory(), max_hits=max_hits)

        if cache_file is not None:
            try:
                with cache_file.open("wb") as f:
                    pickle.dump(index, f, protocol=pickle.HIGHEST_PROTOCOL)
                logger.info(f"Saved term index cache ({identity[:12]})")
            except Exception:
                logger.warning("Failed to save term index cache", exc_info=True)
        return index
