"""Document loaders."""

from .annotated import AnnotatedLoader  # noqa: F401
from .gigaword import GigawordLoader  # noqa: F401
from .text import JSONLLoader, TextLoader  # noqa: F401
