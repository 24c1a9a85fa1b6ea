"""
Shared utilities for the distant-supervision pipeline.
"""

from ds_pipeline.utils.io import iter_files, open_text, read_tsv
from ds_pipeline.utils.serialization import (
    DocumentWriter,
    document_from_dict,
    document_to_dict,
    iter_documents,
    load_documents,
    save_documents,
)

__all__ = [
    "iter_files",
    "open_text",
    "read_tsv",
    "DocumentWriter",
    "document_from_dict",
    "document_to_dict",
    "iter_documents",
    "load_documents",
    "save_documents",
]
