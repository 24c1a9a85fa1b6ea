from typing import Protocol, Set


class CandidateLookup(Protocol):
    """Resolves a mention surface string to candidate entity ids."""

    def lookup(self, mention: str) -> Set[str]:
        ...
