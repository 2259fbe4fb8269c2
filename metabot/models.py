"""Core data models shared across metabot components."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence


class Dialect(str, Enum):
    """Supported metadata document dialects."""

    KEY_VALUE = "keyvalue"
    COMPONENT = "component"


class FieldName(str, Enum):
    """Metadata fields the patcher knows how to write."""

    KEYWORDS = "keywords"
    SUMMARY = "summary"
    DESCRIPTION = "description"


# Description placement depends on whether a summary already exists, so order is fixed.
FIELD_ORDER: tuple[FieldName, ...] = (
    FieldName.KEYWORDS,
    FieldName.SUMMARY,
    FieldName.DESCRIPTION,
)


class FieldStatus(str, Enum):
    """Outcome of one field patch against one document."""

    APPLIED = "applied"
    SKIPPED_UNSUPPORTED = "skipped-unsupported"
    SKIPPED_SUPERSEDED = "skipped-superseded"
    SKIPPED_TEMPLATE = "skipped-template"
    FAILED = "failed"


@dataclass
class Document:
    """A metadata file loaded into memory for a single processing pass."""

    path: str
    dialect: Dialect
    is_template: bool
    content: str


@dataclass
class FieldValues:
    """Values to inject; ``None`` means the field was not requested."""

    keywords: Optional[Sequence[str]] = None
    summary: Optional[str] = None
    description: Optional[str] = None

    def requested(self) -> List[FieldName]:
        """Return the requested fields in patch order."""
        return [name for name in FIELD_ORDER if self.get(name) is not None]

    def get(self, name: FieldName) -> object:
        if name is FieldName.KEYWORDS:
            return self.keywords
        if name is FieldName.SUMMARY:
            return self.summary
        return self.description


@dataclass
class PatchResult:
    """Content after applying one field patch.

    ``placement`` names where the field ended up (``replace``, ``after-name``,
    ``append``, ...) so callers can report fallbacks.
    """

    content: str
    status: FieldStatus
    placement: Optional[str] = None


@dataclass
class FieldOutcome:
    """Per-field status reported upward for change summaries."""

    field: FieldName
    status: FieldStatus
    placement: Optional[str] = None
    detail: Optional[str] = None


@dataclass
class DocumentReport:
    """Result of running a patch sequence over one document."""

    document: Document
    content: str
    outcomes: List[FieldOutcome] = field(default_factory=list)
    written: bool = False

    @property
    def changed(self) -> bool:
        return self.content != self.document.content

    def status_of(self, name: FieldName) -> Optional[FieldStatus]:
        for outcome in self.outcomes:
            if outcome.field is name:
                return outcome.status
        return None

    @property
    def applied_fields(self) -> List[FieldName]:
        return [o.field for o in self.outcomes if o.status is FieldStatus.APPLIED]
