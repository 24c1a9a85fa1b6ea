import logging
from typing import Dict, Iterable, Optional, Set, Tuple

from ds_pipeline.registry import relation_stores
from ds_pipeline.utils.io import read_tsv

logger = logging.getLogger(__name__)


@relation_stores.register("memory")
class RelationTableStore:
    """
    In-memory relation facts keyed by ordered entity pair.

    Loads ``entity1<TAB>relation<TAB>entity2`` lines from a file or from
    every file below a directory (one file per relation type works too).
    """

    def __init__(
        self,
        path: Optional[str] = None,
        facts: Optional[Iterable[Tuple[str, str, str]]] = None,
    ) -> None:
        if path is None and facts is None:
            raise ValueError("Relation table requires a path or facts.")
        self.facts: Dict[Tuple[str, str], Set[str]] = {}
        if path is not None:
            for entity1, relation, entity2 in read_tsv(path, columns=3):
                self.add(entity1, relation, entity2)
        for entity1, relation, entity2 in facts or ():
            self.add(entity1, relation, entity2)
        logger.info(f"{len(self.facts)} entity pairs with relations loaded.")

    def add(self, entity1: str, relation: str, entity2: str) -> None:
        self.facts.setdefault((entity1, entity2), set()).add(relation)

    def lookup(self, entity1: str, entity2: str) -> Set[str]:
        return set(self.facts.get((entity1, entity2), ()))
