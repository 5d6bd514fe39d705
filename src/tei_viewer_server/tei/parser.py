"""
TEI Document Parser

Turns TEI XML text into a `ParsedTEIDocument`.

Element matching is by local name, so documents declaring the TEI namespace
(``http://www.tei-c.org/ns/1.0``) and un-namespaced documents are handled the
same way. Recognized vocabulary:

- ``text``  -> Section (``type``, ``xml:lang``, ``xml:id``)
- ``seg``   -> Segment (``xml:id``)
- ``l``     -> Line, only when ``xml:id`` ends in ``.<book>.<line>``
- ``w``     -> Word (``xml:id``)
- ``anchor``-> Anchor inside a word
- ``lb``    -> newline inside extracted text
- ``title[type=main]``, ``author``, ``editor``, ``date``,
  ``langUsage//language[ana=source]`` -> Metadata (first match only)

Everything else is ignored. Parsing is synchronous and keeps no state
between calls.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Union

from lxml import etree

from .models import (
    DEFAULT_AUTHOR,
    DEFAULT_DATE,
    DEFAULT_EDITOR,
    DEFAULT_LANGUAGE,
    DEFAULT_TITLE,
    UNKNOWN,
    Anchor,
    Line,
    Metadata,
    ParsedTEIDocument,
    Section,
    Segment,
    VerseKey,
    Word,
    match_verse_number,
)
from .normalizer import extract_text, normalize

logger = logging.getLogger("tei.parser")


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"
XML_ID = f"{{{XML_NAMESPACE}}}id"
XML_LANG = f"{{{XML_NAMESPACE}}}lang"


def _any_ns(tag: str) -> str:
    """lxml tag filter matching ``tag`` in any namespace or none."""
    return "{*}" + tag


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class MalformedMarkupError(ValueError):
    """
    Raised when the input is not well-formed XML.

    ``diagnostic`` holds the XML engine's own error message.
    """

    def __init__(self, diagnostic: str) -> None:
        super().__init__(f"XML parsing failed: {diagnostic}")
        self.diagnostic = diagnostic


# ---------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------

class TEIParser:
    """
    A parsed TEI tree plus the extraction logic over it.

    The XML is parsed once in the constructor; `parse()` builds a fresh
    `ParsedTEIDocument` from the tree every time it is called.
    """

    def __init__(self, xml_content: Union[str, bytes]) -> None:
        """
        Parameters
        ----------
        xml_content : str | bytes
            The full document. ``str`` input is encoded as UTF-8 and any
            encoding named in its XML declaration is ignored; ``bytes`` input
            is decoded according to its declaration.

        Raises
        ------
        MalformedMarkupError
            If the document is not well-formed.
        """
        self._root = _parse_xml(xml_content)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def parse(self) -> ParsedTEIDocument:
        sections = [
            self._parse_section(text_element)
            for text_element in self._root.iter(_any_ns("text"))
        ]
        return ParsedTEIDocument(
            sections=sections,
            metadata=self._parse_metadata(),
        )

    def segments_by_id_pattern(self, pattern: str) -> List[Segment]:
        """All segments in the document whose ``xml:id`` contains ``pattern``."""
        return [
            self._parse_segment(seg)
            for seg in self._root.iter(_any_ns("seg"))
            if pattern in (seg.get(XML_ID) or "")
        ]

    def find_corresponding_segments(self, segment_id: str) -> List[Segment]:
        """
        All segments sharing ``segment_id``'s verse key, in document order.

        ``"la.5.335"`` finds ``"la.5.335"``, ``"it.5.335"`` and so on across
        every section. Returns an empty list when ``segment_id`` carries no
        verse key.
        """
        key = VerseKey.parse(segment_id)
        if key is None:
            return []
        return [
            self._parse_segment(seg)
            for seg in self._root.iter(_any_ns("seg"))
            if VerseKey.parse(seg.get(XML_ID)) == key
        ]

    # ------------------------------------------------------------------
    # Tree Builders
    # ------------------------------------------------------------------

    def _parse_section(self, text_element: etree._Element) -> Section:
        return Section(
            type=text_element.get("type") or UNKNOWN,
            language=text_element.get(XML_LANG) or UNKNOWN,
            id=text_element.get(XML_ID) or UNKNOWN,
            segments=[
                self._parse_segment(seg)
                for seg in text_element.iterdescendants(_any_ns("seg"))
            ],
        )

    def _parse_segment(self, seg_element: etree._Element) -> Segment:
        words = [
            self._parse_word(w)
            for w in seg_element.iterdescendants(_any_ns("w"))
        ]

        lines: List[Line] = []
        for line_element in seg_element.iterdescendants(_any_ns("l")):
            line = self._parse_line(line_element)
            if line is not None:
                lines.append(line)

        return Segment(
            id=seg_element.get(XML_ID) or "",
            content=normalize(seg_element),
            words=words,
            line_numbers=[line.number for line in lines],
            lines=lines,
        )

    def _parse_line(self, line_element: etree._Element) -> Optional[Line]:
        line_id = line_element.get(XML_ID) or ""
        number = match_verse_number(line_id)
        if number is None:
            logger.debug("Skipping line without verse number: %r", line_id)
            return None

        return Line(
            id=line_id,
            number=number,
            content=normalize(line_element),
            words=[
                self._parse_word(w)
                for w in line_element.iterdescendants(_any_ns("w"))
            ],
        )

    def _parse_word(self, word_element: etree._Element) -> Word:
        return Word(
            id=word_element.get(XML_ID) or "",
            content=normalize(word_element),
            anchors=[
                Anchor(
                    id=anchor.get(XML_ID) or "",
                    content=extract_text(anchor, line_breaks=False),
                )
                for anchor in word_element.iterdescendants(_any_ns("anchor"))
            ],
        )

    def _parse_metadata(self) -> Metadata:
        title = _first(
            el for el in self._root.iter(_any_ns("title"))
            if el.get("type") == "main"
        )
        language = _first(
            el for el in self._root.iter(_any_ns("language"))
            if el.get("ana") == "source"
            and _first(el.iterancestors(_any_ns("langUsage"))) is not None
        )

        return Metadata(
            title=_trimmed_text(title) or DEFAULT_TITLE,
            author=_trimmed_text(_first(self._root.iter(_any_ns("author")))) or DEFAULT_AUTHOR,
            editor=_trimmed_text(_first(self._root.iter(_any_ns("editor")))) or DEFAULT_EDITOR,
            date=_trimmed_text(_first(self._root.iter(_any_ns("date")))) or DEFAULT_DATE,
            language=_trimmed_text(language) or DEFAULT_LANGUAGE,
        )


# ---------------------------------------------------------------------
# Module-Level Helpers
# ---------------------------------------------------------------------

def parse_tei(xml_content: Union[str, bytes]) -> ParsedTEIDocument:
    """Parse TEI XML into a `ParsedTEIDocument` in one call."""
    return TEIParser(xml_content).parse()


def _parse_xml(xml_content: Union[str, bytes]) -> etree._Element:
    if isinstance(xml_content, str):
        data = xml_content.encode("utf-8")
        encoding: Optional[str] = "utf-8"
    else:
        data = xml_content
        encoding = None

    # A fresh parser per call: lxml parser objects must not be shared
    # between threads. Entities declared in the internal subset expand;
    # external ones are never loaded.
    parser = etree.XMLParser(
        encoding=encoding,
        resolve_entities="internal",
        no_network=True,
    )

    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as exc:
        diagnostic = str(exc) or "document is not well-formed"
        logger.warning("Rejected malformed TEI document: %s", diagnostic)
        raise MalformedMarkupError(diagnostic) from exc

    if root is None:
        logger.warning("Rejected TEI document without a root element")
        raise MalformedMarkupError("Document is empty")
    return root


def _first(nodes: Iterator[etree._Element]) -> Optional[etree._Element]:
    return next(iter(nodes), None)


def _trimmed_text(element: Optional[etree._Element]) -> str:
    if element is None:
        return ""
    return extract_text(element, line_breaks=False).strip()
