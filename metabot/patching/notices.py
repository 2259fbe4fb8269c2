"""Retention of compliance notices across description regeneration."""

from __future__ import annotations

import re
from typing import Callable, List, Sequence

from . import markup

NoticePredicate = Callable[[str], bool]

NOTICE_PATTERN = re.compile(r"NOTE:\s*This\s+application", re.IGNORECASE)

# Elements whose text is checked for notices; list items are re-added as paragraphs.
_NOTICE_CARRIERS = {"p", "li"}


def is_preserved_notice(text: str) -> bool:
    """Default policy: any block mentioning ``NOTE: This application``."""
    return bool(NOTICE_PATTERN.search(text))


def collect_notices(description_markup: str, predicate: NoticePredicate = is_preserved_notice) -> List[str]:
    """Normalized text of each notice block inside an existing description, de-duplicated."""
    notices: List[str] = []
    for element in markup.scan(description_markup):
        if element.name not in _NOTICE_CARRIERS or element.end is None:
            continue
        text = markup.text_content(description_markup[element.open_end : element.close_start])
        if text and predicate(text) and text not in notices:
            notices.append(text)
    return notices


def append_missing_notices(lines: Sequence[str], notices: Sequence[str], indent: str) -> List[str]:
    """Append each notice as a ``<p>`` line unless the content already carries it."""
    result = list(lines)
    for notice in notices:
        haystack = markup.collapse_whitespace("\n".join(result)).lower()
        if markup.collapse_whitespace(notice).lower() in haystack:
            continue
        result.append(f"{indent}<p>{notice}</p>")
    return result


__all__ = [
    "NOTICE_PATTERN",
    "NoticePredicate",
    "append_missing_notices",
    "collect_notices",
    "is_preserved_notice",
]
