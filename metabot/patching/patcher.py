"""Single-field patch dispatch across document dialects."""

from __future__ import annotations

from typing import Sequence

from ..config import PatchConfig
from ..logging import get_logger
from ..models import Dialect, Document, FieldName, FieldStatus, PatchResult
from . import component, keyvalue
from .notices import NoticePredicate, is_preserved_notice

logger = get_logger("patching.patcher")


class FieldPatcher:
    """Applies insert-or-replace semantics for one field of one document.

    Every method is a pure function of its inputs: the document is never
    mutated and nothing is cached between calls.
    """

    def __init__(
        self,
        config: PatchConfig | None = None,
        *,
        is_notice: NoticePredicate = is_preserved_notice,
    ) -> None:
        self.config = config or PatchConfig()
        self.is_notice = is_notice

    def patch(self, document: Document, field: FieldName, value: object, content: str | None = None) -> PatchResult:
        """Patch ``field`` on ``content`` (defaults to the document's own content)."""
        text = document.content if content is None else content
        if field is FieldName.KEYWORDS:
            return self.patch_keywords(document, value, text)  # type: ignore[arg-type]
        if field is FieldName.SUMMARY:
            return self.patch_summary(document, str(value), text)
        return self.patch_description(document, str(value), text)

    def patch_keywords(self, document: Document, keywords: Sequence[str], content: str | None = None) -> PatchResult:
        text = document.content if content is None else content
        if document.dialect is Dialect.KEY_VALUE:
            updated, placement = keyvalue.patch_keywords(text, keywords)
        else:
            updated, placement = component.patch_keywords(text, keywords, self.config.indent)
        return self._applied(document, FieldName.KEYWORDS, updated, placement)

    def patch_summary(self, document: Document, summary: str, content: str | None = None) -> PatchResult:
        text = document.content if content is None else content
        if document.dialect is Dialect.KEY_VALUE:
            return self._unsupported(document, FieldName.SUMMARY, text)
        updated, placement = component.patch_summary(text, summary, self.config.indent)
        return self._applied(document, FieldName.SUMMARY, updated, placement)

    def patch_description(self, document: Document, description: str, content: str | None = None) -> PatchResult:
        text = document.content if content is None else content
        if document.dialect is Dialect.KEY_VALUE:
            return self._unsupported(document, FieldName.DESCRIPTION, text)
        updated, placement = component.patch_description(
            text, description, self.config.indent, self.is_notice
        )
        return self._applied(document, FieldName.DESCRIPTION, updated, placement)

    @staticmethod
    def _applied(document: Document, field: FieldName, content: str, placement: str) -> PatchResult:
        logger.debug("%s for %s placed via %s", field.value, document.path, placement)
        return PatchResult(content=content, status=FieldStatus.APPLIED, placement=placement)

    @staticmethod
    def _unsupported(document: Document, field: FieldName, content: str) -> PatchResult:
        logger.warning(
            "Skipping %s for %s: only component descriptors carry this field",
            field.value,
            document.path,
        )
        return PatchResult(content=content, status=FieldStatus.SKIPPED_UNSUPPORTED)
