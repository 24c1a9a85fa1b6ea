"""Relation stores and the relation annotator."""

from .annotator import RelationAnnotator  # noqa: F401
from .index import IndexedRelationStore  # noqa: F401
from .memory import RelationTableStore  # noqa: F401
