import logging
from typing import Dict, Iterable, Optional, Set

from ds_pipeline.registry import candidate_lookups
from ds_pipeline.utils.io import read_tsv

logger = logging.getLogger(__name__)


@candidate_lookups.register("memory")
class AliasTableLookup:
    """
    In-memory exact-match alias table.

    Loads ``entity<TAB>alias`` lines; an alias may name several entities and
    an entity may have several aliases, one pairing per line.
    """

    def __init__(
        self,
        path: Optional[str] = None,
        aliases: Optional[Dict[str, Iterable[str]]] = None,
    ) -> None:
        if path is None and aliases is None:
            raise ValueError("Alias table requires a path or an aliases mapping.")
        self.aliases: Dict[str, Set[str]] = {}
        if path is not None:
            for entity, alias in read_tsv(path, columns=2):
                self.aliases.setdefault(alias, set()).add(entity)
        for alias, entities in (aliases or {}).items():
            self.aliases.setdefault(alias, set()).update(entities)
        logger.info(f"{len(self.aliases)} aliases loaded.")

    def lookup(self, mention: str) -> Set[str]:
        return set(self.aliases.get(mention, ()))
