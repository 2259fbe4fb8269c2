"""Keyword patching for desktop-entry (key=value) documents."""

from __future__ import annotations

import re
from typing import Sequence

from ..logging import get_logger

DESKTOP_ENTRY_HEADER = "[Desktop Entry]"

# Case-sensitive key; localized variants such as Keywords[de]= are left alone.
_KEYWORDS_LINE = re.compile(r"^Keywords=[^\r\n]*", re.MULTILINE)

logger = get_logger("patching.keyvalue")


def format_keywords_line(keywords: Sequence[str]) -> str:
    """Serialize tokens as ``Keywords=a;b;c;``."""
    if not keywords:
        return "Keywords=;"
    return "Keywords=" + "".join(f"{token};" for token in keywords)


def patch_keywords(content: str, keywords: Sequence[str]) -> tuple[str, str]:
    """Insert or replace the ``Keywords=`` line.

    Returns the new content and the placement used: ``replace``,
    ``after-desktop-entry`` or ``append``.
    """
    line = format_keywords_line(keywords)

    match = _KEYWORDS_LINE.search(content)
    if match:
        return content[: match.start()] + line + content[match.end() :], "replace"

    lines = content.split("\n")
    for index, current in enumerate(lines):
        if current.strip() == DESKTOP_ENTRY_HEADER:
            ending = "\r" if current.endswith("\r") else ""
            lines.insert(index + 1, line + ending)
            return "\n".join(lines), "after-desktop-entry"

    logger.warning("No %s header found; appending Keywords line at end of document", DESKTOP_ENTRY_HEADER)
    return content + "\n" + line, "append"


__all__ = ["DESKTOP_ENTRY_HEADER", "format_keywords_line", "patch_keywords"]
