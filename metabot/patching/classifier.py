"""Filename-based classification of metadata documents."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath

from ..models import Dialect

TEMPLATE_SUFFIX = ".in"
_KEY_VALUE_SUFFIX = ".desktop"
_COMPONENT_MARKERS = (".metainfo.xml", ".appdata.xml")


class UnclassifiedDocumentError(ValueError):
    """Raised when a path does not name a supported metadata document."""


@dataclass(frozen=True)
class Classification:
    """Dialect and template flag derived from a document path."""

    dialect: Dialect
    is_template: bool


def classify(path: str | PurePath) -> Classification:
    """Return the dialect of ``path`` and whether it is a build-time template.

    Only the filename is inspected; content never changes the answer.
    """
    text = str(path)
    is_template = text.endswith(TEMPLATE_SUFFIX)
    base = text[: -len(TEMPLATE_SUFFIX)] if is_template else text

    if base.endswith(_KEY_VALUE_SUFFIX):
        return Classification(Dialect.KEY_VALUE, is_template)
    if any(marker in base for marker in _COMPONENT_MARKERS):
        return Classification(Dialect.COMPONENT, is_template)
    raise UnclassifiedDocumentError(f"Not a supported metadata file: {text}")


def is_metadata_path(path: str | PurePath) -> bool:
    """Return True when ``path`` can be classified."""
    try:
        classify(path)
    except UnclassifiedDocumentError:
        return False
    return True


__all__ = ["Classification", "TEMPLATE_SUFFIX", "UnclassifiedDocumentError", "classify", "is_metadata_path"]
