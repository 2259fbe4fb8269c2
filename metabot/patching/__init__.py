"""Idempotent field patching for desktop-entry and component descriptor documents."""

from .classifier import Classification, UnclassifiedDocumentError, classify, is_metadata_path
from .notices import NoticePredicate, is_preserved_notice
from .orchestrator import InvalidFieldValueError, PatchOrchestrator, normalize_keywords, write_document
from .patcher import FieldPatcher

__all__ = [
    "Classification",
    "FieldPatcher",
    "InvalidFieldValueError",
    "NoticePredicate",
    "PatchOrchestrator",
    "UnclassifiedDocumentError",
    "classify",
    "is_metadata_path",
    "is_preserved_notice",
    "normalize_keywords",
    "write_document",
]
