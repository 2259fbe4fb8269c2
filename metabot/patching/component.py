"""Field strategies for component descriptor (AppStream-style XML) documents."""

from __future__ import annotations

from typing import Sequence

from ..logging import get_logger
from . import markup
from .notices import NoticePredicate, append_missing_notices, collect_notices, is_preserved_notice

DEFAULT_INDENT = "    "

logger = get_logger("patching.component")


def build_keywords_block(keywords: Sequence[str], base: str, step: str) -> str:
    if not keywords:
        return f"{base}<keywords></keywords>"
    child = base + step
    items = "\n".join(f"{child}<keyword>{markup.escape_text(k)}</keyword>" for k in keywords)
    return f"{base}<keywords>\n{items}\n{base}</keywords>"


def _with_line_ending(block: str, newline: str) -> str:
    return block.replace("\n", newline) if newline != "\n" else block


def patch_keywords(content: str, keywords: Sequence[str], indent: str = DEFAULT_INDENT) -> tuple[str, str]:
    """Replace the ``<keywords>`` block or insert one before ``</component>``."""
    newline = markup.line_ending(content)
    base = markup.detect_indent(content, "keywords", indent)
    block = _with_line_ending(build_keywords_block(keywords, base, indent), newline)

    existing = markup.find_field(content, "keywords")
    if existing is not None:
        return markup.replace_element(content, existing, block), "replace"

    component = markup.find_component(content)
    if component is not None and component.closed:
        return markup.insert_before_close(content, component, block, newline), "before-component-close"

    logger.warning("No </component> tag found; appending <keywords> at end of document")
    return content + newline + block, "append"


def patch_summary(content: str, summary: str, indent: str = DEFAULT_INDENT) -> tuple[str, str]:
    """Replace ``<summary>`` or insert it after ``<name>`` / the opening ``<component>``."""
    newline = markup.line_ending(content)
    base = markup.detect_indent(content, "summary", indent)
    block = f"{base}<summary>{markup.escape_text(summary)}</summary>"

    existing = markup.find_field(content, "summary")
    if existing is not None:
        return markup.replace_element(content, existing, block), "replace"

    name = markup.find_field(content, "name")
    if name is not None:
        return markup.insert_after(content, name.end, block, newline), "after-name"

    component = markup.find_component(content)
    if component is not None:
        logger.warning("No <name> element found; inserting <summary> after <component>")
        return markup.insert_after(content, component.open_end, block, newline), "after-component-open"

    logger.warning("No <component> tag found; prepending <summary> to document")
    return block + newline + content, "prepend"


def patch_description(
    content: str,
    description: str,
    indent: str = DEFAULT_INDENT,
    is_notice: NoticePredicate = is_preserved_notice,
) -> tuple[str, str]:
    """Write the pre-formatted description markup, keeping earlier compliance notices.

    Only placement and indentation are handled here; the incoming value must
    already consist of ``<p>``/``<ul>``/``<ol>`` blocks.
    """
    newline = markup.line_ending(content)
    base = markup.detect_indent(content, "description", indent)
    inner = base + indent
    lines = [inner + line.strip() for line in description.split("\n") if line.strip()]

    existing = markup.find_field(content, "description")
    if existing is not None:
        notices = collect_notices(content[existing.open_end : existing.close_start], is_notice)
        if notices:
            logger.debug("Preserving %d notice(s) from existing description", len(notices))
        lines = append_missing_notices(lines, notices, inner)

    if lines:
        block = f"{base}<description>{newline}" + newline.join(lines) + f"{newline}{base}</description>"
    else:
        block = f"{base}<description></description>"

    if existing is not None:
        return markup.replace_element(content, existing, block), "replace"

    for anchor in ("summary", "name"):
        element = markup.find_field(content, anchor)
        if element is not None:
            return markup.insert_after(content, element.end, block, newline), f"after-{anchor}"

    component = markup.find_component(content)
    if component is not None and component.closed:
        return markup.insert_before_close(content, component, block, newline), "before-component-close"

    logger.warning("No anchor found; appending <description> at end of document")
    return content + newline + block, "append"


__all__ = ["DEFAULT_INDENT", "build_keywords_block", "patch_description", "patch_keywords", "patch_summary"]
