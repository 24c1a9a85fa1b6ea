"""Entity linking: candidate lookups and the linking policy."""

from .index import IndexedAliasLookup  # noqa: F401
from .linker import EntityLinker  # noqa: F401
from .memory import AliasTableLookup  # noqa: F401
