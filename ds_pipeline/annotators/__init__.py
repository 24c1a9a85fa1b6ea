"""Annotation services."""

from .spacy import SpacyAnnotator  # noqa: F401
