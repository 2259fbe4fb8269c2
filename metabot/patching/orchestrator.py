"""Sequencing of field patches over documents."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from ..config import PatchConfig
from ..logging import get_logger
from ..models import (
    Dialect,
    Document,
    DocumentReport,
    FieldName,
    FieldOutcome,
    FieldStatus,
    FieldValues,
)
from .patcher import FieldPatcher

Writer = Callable[[Document, str], None]


class InvalidFieldValueError(ValueError):
    """Raised when a requested field value cannot be patched."""


def normalize_keywords(tokens: Iterable[str], max_keywords: int) -> List[str]:
    """Lowercase, strip, de-duplicate (first occurrence wins) and cap."""
    result: List[str] = []
    for token in tokens:
        cleaned = str(token).strip().lower()
        if cleaned and cleaned not in result:
            result.append(cleaned)
    return result[:max_keywords]


def write_document(document: Document, content: str) -> None:
    """Overwrite the document on disk as UTF-8, leaving line endings untouched."""
    with Path(document.path).open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)


class PatchOrchestrator:
    """Applies keywords, then summary, then description, and writes once."""

    def __init__(
        self,
        patcher: FieldPatcher | None = None,
        config: PatchConfig | None = None,
        writer: Writer | None = None,
    ) -> None:
        self.config = config or (patcher.config if patcher else PatchConfig())
        self.patcher = patcher or FieldPatcher(self.config)
        self.writer = writer or write_document
        self.logger = get_logger("patching.orchestrator")

    def prepare(self, values: FieldValues) -> FieldValues:
        """Validate and normalise requested values before any document is touched."""
        keywords = values.keywords
        if keywords is not None:
            keywords = normalize_keywords(keywords, self.config.max_keywords)
            if not keywords:
                raise InvalidFieldValueError("At least one keyword is required")

        summary = values.summary
        if summary is not None:
            summary = summary.strip()
            if not summary:
                raise InvalidFieldValueError("Summary must not be blank")
            if len(summary) > self.config.summary_max_length:
                self.logger.warning(
                    "Summary is %d characters (max %d)",
                    len(summary),
                    self.config.summary_max_length,
                )

        description = values.description
        if description is not None and not description.strip():
            raise InvalidFieldValueError("Description must not be blank")

        return FieldValues(keywords=keywords, summary=summary, description=description)

    def plan(self, documents: Sequence[Document], values: FieldValues) -> List[List[FieldName]]:
        """Fields each document should receive, parallel to ``documents``."""
        requested = values.requested()
        has_component = any(doc.dialect is Dialect.COMPONENT for doc in documents)
        plans: List[List[FieldName]] = []
        for document in documents:
            fields = list(requested)
            if (
                self.config.prefer_component_keywords
                and has_component
                and document.dialect is Dialect.KEY_VALUE
            ):
                fields = [f for f in fields if f is not FieldName.KEYWORDS]
            plans.append(fields)
        return plans

    def apply(
        self,
        document: Document,
        values: FieldValues,
        fields: Optional[Sequence[FieldName]] = None,
    ) -> DocumentReport:
        """Thread the document's content through each requested field patch in memory."""
        requested = values.requested()
        selected = set(requested if fields is None else fields)
        report = DocumentReport(document=document, content=document.content)

        if self.config.skip_templates and document.is_template:
            self.logger.warning("Skipping template %s", document.path)
            report.outcomes = [
                FieldOutcome(field=name, status=FieldStatus.SKIPPED_TEMPLATE) for name in requested
            ]
            return report

        for name in requested:
            if name not in selected:
                self.logger.warning("Skipped %s for %s (component descriptor present)", name.value, document.path)
                report.outcomes.append(FieldOutcome(field=name, status=FieldStatus.SKIPPED_SUPERSEDED))
                continue
            try:
                result = self.patcher.patch(document, name, values.get(name), report.content)
            except Exception as exc:
                self.logger.exception("Failed to patch %s in %s", name.value, document.path)
                report.outcomes.append(FieldOutcome(field=name, status=FieldStatus.FAILED, detail=str(exc)))
                continue
            report.content = result.content
            report.outcomes.append(
                FieldOutcome(field=name, status=result.status, placement=result.placement)
            )
            if result.status is FieldStatus.APPLIED:
                self.logger.info("Applied %s to %s", name.value, document.path)
        return report

    def run(
        self,
        documents: Sequence[Document],
        values: FieldValues,
        *,
        dry_run: bool = False,
    ) -> List[DocumentReport]:
        """Patch every document and persist each changed one exactly once."""
        prepared = self.prepare(values)
        reports: List[DocumentReport] = []
        for document, fields in zip(documents, self.plan(documents, prepared)):
            report = self.apply(document, prepared, fields)
            reports.append(report)
            if not report.changed:
                self.logger.info("No changes for %s", document.path)
                continue
            if dry_run:
                continue
            try:
                self.writer(document, report.content)
            except OSError:
                self.logger.exception("Failed to write %s", document.path)
                continue
            report.written = True
        return reports


__all__ = [
    "InvalidFieldValueError",
    "PatchOrchestrator",
    "normalize_keywords",
    "write_document",
]
