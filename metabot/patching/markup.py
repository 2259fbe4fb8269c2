"""Minimal structural walk over component descriptor markup.

Only element boundaries are tracked: comments, CDATA sections, processing
instructions and doctype declarations are skipped, self-closing tags produce
empty elements, and unclosed elements are kept with ``close_start=None`` so
their opening tag can still serve as an anchor.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional
from xml.sax.saxutils import escape

_TOKEN = re.compile(
    r"<!--.*?-->"
    r"|<!\[CDATA\[.*?\]\]>"
    r"|<\?.*?\?>"
    r"|<![^>]*>"
    r"|<(?P<close>/?)(?P<name>[A-Za-z_][\w:.-]*)(?P<attrs>(?:[^>\"']|\"[^\"]*\"|'[^']*')*)>",
    re.DOTALL,
)
_LANG_ATTR = re.compile(r"\bxml:lang\s*=")
_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}


@dataclass
class Element:
    """Offsets of one element in the source text."""

    name: str
    attrs: str
    start: int
    open_end: int
    close_start: Optional[int]
    end: Optional[int]
    parent: Optional[int]

    @property
    def closed(self) -> bool:
        return self.end is not None

    @property
    def translated(self) -> bool:
        return bool(_LANG_ATTR.search(self.attrs))


def scan(content: str) -> List[Element]:
    """Return every element in document order (by opening tag)."""
    elements: List[Element] = []
    stack: List[int] = []
    for match in _TOKEN.finditer(content):
        name = match.group("name")
        if name is None:
            continue
        if match.group("close"):
            if name not in (elements[i].name for i in stack):
                continue
            while stack:
                index = stack.pop()
                element = elements[index]
                if element.name == name:
                    element.close_start = match.start()
                    element.end = match.end()
                    break
            continue

        attrs = match.group("attrs")
        self_closing = attrs.rstrip().endswith("/")
        element = Element(
            name=name,
            attrs=attrs,
            start=match.start(),
            open_end=match.end(),
            close_start=match.end() if self_closing else None,
            end=match.end() if self_closing else None,
            parent=stack[-1] if stack else None,
        )
        elements.append(element)
        if not self_closing:
            stack.append(len(elements) - 1)
    return elements


def find_root(elements: List[Element]) -> Optional[int]:
    """Index of the first ``<component>`` element, if any."""
    for index, element in enumerate(elements):
        if element.name == "component":
            return index
    return None


def find_field(content: str, name: str) -> Optional[Element]:
    """Locate the untranslated, closed ``<name>`` field element.

    Direct children of the root ``<component>`` are preferred; documents
    without a root fall back to the first matching element anywhere.
    """
    elements = scan(content)
    root = find_root(elements)
    candidates = [
        element
        for element in elements
        if element.name == name and element.closed and not element.translated
    ]
    if root is not None:
        children = [element for element in candidates if element.parent == root]
        if children:
            return children[0]
        # A field block appended outside the root by an earlier fallback.
        outside = [element for element in candidates if not _within(elements, element, root)]
        return outside[0] if outside else None
    return candidates[0] if candidates else None


def find_component(content: str) -> Optional[Element]:
    elements = scan(content)
    root = find_root(elements)
    return elements[root] if root is not None else None


def _within(elements: List[Element], element: Element, ancestor: int) -> bool:
    parent = element.parent
    while parent is not None:
        if parent == ancestor:
            return True
        parent = elements[parent].parent
    return False


def line_start(content: str, offset: int) -> int:
    return content.rfind("\n", 0, offset) + 1


def leading_indent(content: str, offset: int) -> Optional[str]:
    """Whitespace before ``offset`` on its line, or None if other text precedes it."""
    prefix = content[line_start(content, offset) : offset]
    return prefix if not prefix.strip() else None


def detect_indent(content: str, name: str, default: str) -> str:
    """Indentation of the existing ``<name>`` field, else ``default``."""
    element = find_field(content, name)
    if element is None:
        return default
    indent = leading_indent(content, element.start)
    return indent if indent is not None else default


def line_ending(content: str) -> str:
    """``\\r\\n`` when the first line break of ``content`` is CRLF, else ``\\n``."""
    index = content.find("\n")
    return "\r\n" if index > 0 and content[index - 1] == "\r" else "\n"


def replace_element(content: str, element: Element, block: str) -> str:
    """Splice ``block`` (which carries its own leading indent) over ``element``."""
    if element.end is None:
        raise ValueError(f"Cannot replace unclosed <{element.name}> element")
    start = element.start
    if leading_indent(content, element.start) is not None:
        start = line_start(content, element.start)
    else:
        block = block.lstrip(" \t")
    return content[:start] + block + content[element.end :]


def insert_after(content: str, offset: int, block: str, newline: str = "\n") -> str:
    """Insert ``block`` on a new line starting at ``offset``."""
    return content[:offset] + newline + block + content[offset:]


def insert_before_close(content: str, element: Element, block: str, newline: str = "\n") -> str:
    """Insert ``block`` on its own line before the element's closing tag."""
    if element.close_start is None:
        raise ValueError(f"<{element.name}> has no closing tag to insert before")
    close = element.close_start
    if leading_indent(content, close) is not None:
        start = line_start(content, close)
        return content[:start] + block + newline + content[start:]
    return content[:close] + newline + block + newline + content[close:]


def escape_text(text: str) -> str:
    """Escape ``&``, ``<``, ``>``, ``"`` and ``'`` for element content."""
    return escape(text, _XML_ENTITIES)


def text_content(markup: str) -> str:
    """Strip tags and collapse whitespace."""
    return _WHITESPACE.sub(" ", _TAG.sub("", markup)).strip()


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()
