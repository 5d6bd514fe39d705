"""
Text Content Normalizer

Converts TEI element subtrees into display strings.

Text extraction walks the subtree without modifying it: every ``lb``
(line-break marker) contributes a newline at its position, comments and
processing instructions contribute nothing, and all other text and tail
nodes are concatenated in document order.

Normalization then applies, in order:

1. trim leading and trailing whitespace
2. collapse whitespace runs without a newline into a single space
3. drop spaces directly after a newline
4. drop spaces directly before a newline
5. collapse three or more newlines into exactly two

The result is idempotent: normalizing an already-normalized string returns
it unchanged.
"""

from __future__ import annotations

import re
from typing import List

from lxml import etree


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

LINE_BREAK_TAG = "lb"

_HORIZONTAL_WHITESPACE = re.compile(r"[^\S\n]+")
_SPACES_AFTER_NEWLINE = re.compile(r"\n +")
_SPACES_BEFORE_NEWLINE = re.compile(r" +\n")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


# ---------------------------------------------------------------------
# Element Helpers
# ---------------------------------------------------------------------

def is_element(node: etree._Element) -> bool:
    """True for element nodes; False for comments, PIs and entity refs."""
    return isinstance(node.tag, str)


def local_name(node: etree._Element) -> str:
    """Tag name without its ``{namespace}`` prefix ("" for non-elements)."""
    if not is_element(node):
        return ""
    return node.tag.rsplit("}", 1)[-1]


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def extract_text(element: etree._Element, line_breaks: bool = True) -> str:
    """
    Concatenate the text content of ``element``'s subtree.

    Parameters
    ----------
    element : etree._Element
        Subtree root. Its own tail text is not part of its content.

    line_breaks : bool
        When True, each ``lb`` element is replaced by ``"\\n"``. When False,
        ``lb`` elements are treated like any other element, which yields the
        plain text content.

    Returns
    -------
    str
        Raw, un-normalized text.
    """
    parts: List[str] = []
    _collect_text(element, parts, line_breaks)
    return "".join(parts)


def normalize_text(raw: str) -> str:
    """Apply the whitespace and paragraph-break rules to a raw string."""
    text = raw.strip()
    text = _HORIZONTAL_WHITESPACE.sub(" ", text)
    text = _SPACES_AFTER_NEWLINE.sub("\n", text)
    text = _SPACES_BEFORE_NEWLINE.sub("\n", text)
    return _EXCESS_NEWLINES.sub("\n\n", text)


def normalize(element: etree._Element) -> str:
    """Extract and normalize the display text of an element subtree."""
    return normalize_text(extract_text(element))


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _collect_text(node: etree._Element, parts: List[str], line_breaks: bool) -> None:
    if node.text:
        parts.append(node.text)

    for child in node:
        if is_element(child):
            if line_breaks and local_name(child) == LINE_BREAK_TAG:
                parts.append("\n")
            else:
                _collect_text(child, parts, line_breaks)
        if child.tail:
            parts.append(child.tail)
