"""Turns raw model output into field values the patcher accepts."""

from __future__ import annotations

import re
from typing import List

from ..patching.orchestrator import normalize_keywords

_LEADING_LABEL = re.compile(r"^[^:\n]*:\s*")
_BULLET = re.compile(r"^[-•*]\s*")
_SPLIT = re.compile(r"[,\n]")
_SUMMARY_PREAMBLE = re.compile(r"^(here'?s? a summary:?|summary:)\s*", re.IGNORECASE)
_QUOTES = re.compile(r"^[\"']|[\"']$")
_FENCE_OPEN = re.compile(r"^```(?:xml)?\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\s*```$")
_DESCRIPTION_OPEN = re.compile(r"^\s*<description>\s*", re.IGNORECASE)
_DESCRIPTION_CLOSE = re.compile(r"\s*</description>\s*$", re.IGNORECASE)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n+")
_MAX_KEYWORD_LENGTH = 50


class GenerationError(RuntimeError):
    """Raised when model output cannot be turned into a usable value."""


def parse_keywords(raw: str, max_keywords: int = 8) -> List[str]:
    """Extract a normalised keyword list from a comma/newline separated reply."""
    content = raw.strip()
    cleaned = content
    lines = content.split("\n")
    if len(lines) > 1 and "keyword" in lines[0].lower():
        cleaned = "\n".join(lines[1:]).strip()
    cleaned = _LEADING_LABEL.sub("", cleaned, count=1)

    candidates = []
    for part in _SPLIT.split(cleaned):
        token = _BULLET.sub("", part.strip().lower())
        token = token[:-1] if token.endswith(".") else token
        if not token or len(token) >= _MAX_KEYWORD_LENGTH:
            continue
        if "here are" in token or "keywords" in token:
            continue
        candidates.append(token)

    keywords = normalize_keywords(candidates, max_keywords)
    if keywords:
        return keywords

    fallback = [part.strip() for part in _SPLIT.split(content)]
    return normalize_keywords(
        [part for part in fallback if part and len(part) < _MAX_KEYWORD_LENGTH],
        max_keywords,
    )


def clean_summary(raw: str, app_name: str | None = None) -> str:
    """First line of the reply, unquoted, without a trailing period, in sentence case."""
    summary = _SUMMARY_PREAMBLE.sub("", raw.strip())
    summary = _QUOTES.sub("", summary)
    summary = summary.split("\n")[0].strip()
    if summary.endswith("."):
        summary = summary[:-1]

    letters = summary.replace(" ", "")
    if letters and letters == letters.upper() and letters != letters.lower():
        summary = summary[0].upper() + summary[1:].lower()
    if summary and summary[0] != summary[0].upper():
        summary = summary[0].upper() + summary[1:]

    if app_name and summary.lower() == app_name.lower():
        raise GenerationError(
            f'Generated summary is just the app name ("{summary}"). '
            "The summary should describe what the app does."
        )
    return summary


def clean_description(raw: str) -> str:
    """Strip code fences and wrapper tags; wrap bare prose in ``<p>`` blocks."""
    description = raw.strip()
    description = _FENCE_OPEN.sub("", description)
    description = _FENCE_CLOSE.sub("", description)
    description = _DESCRIPTION_OPEN.sub("", description)
    description = _DESCRIPTION_CLOSE.sub("", description)

    if not any(tag in description for tag in ("<p>", "<ul>", "<ol>")):
        paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(description) if p.strip()]
        description = "\n".join(f"<p>\n  {p}\n</p>" for p in paragraphs)
    return description.strip()


__all__ = ["GenerationError", "clean_description", "clean_summary", "parse_keywords"]
