"""
File helpers shared by loaders and lookup tables.

Inputs may be plain or gzip-compressed; fact tables may be a single file or
a directory tree of files (e.g. one file per relation type).
"""

import gzip
import io
import logging
from pathlib import Path
from typing import Iterator, List, TextIO, Union

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

PathLike = Union[str, Path]


def is_gzip(path: PathLike) -> bool:
    with Path(path).open("rb") as f:
        return f.read(2) == GZIP_MAGIC


def open_text(path: PathLike) -> TextIO:
    """Open ``path`` for reading text, decompressing gzip input transparently."""
    if is_gzip(path):
        return io.TextIOWrapper(gzip.open(path, "rb"), encoding="utf-8")
    return Path(path).open(encoding="utf-8")


def iter_files(path: PathLike, suffix: str = "") -> Iterator[Path]:
    """Yield ``path`` itself, or every file below it when it is a directory."""
    root = Path(path)
    if not root.is_dir():
        yield root
        return
    for child in sorted(root.rglob("*")):
        if child.is_file() and child.name.endswith(suffix):
            yield child


def read_tsv(path: PathLike, columns: int) -> Iterator[List[str]]:
    """
    Read tab-separated rows with exactly ``columns`` non-empty fields.

    Args:
        path: File or directory; directories are read recursively
        columns: Expected number of fields per line

    Yields:
        Field lists; malformed lines are skipped
    """
    for file_path in iter_files(path):
        skipped = 0
        with open_text(file_path) as f:
            for line in f:
                fields = line.rstrip("\r\n").split("\t")
                if len(fields) != columns or not all(fields):
                    skipped += 1
                    continue
                yield fields
        if skipped:
            logger.debug(f"Skipped {skipped} malformed lines in {file_path}")
