from typing import Protocol, Set


class RelationStore(Protocol):
    """Known relation labels holding from entity1 to entity2."""

    def lookup(self, entity1: str, entity2: str) -> Set[str]:
        ...
