"""
TEI Document Models

This module defines the immutable domain model produced by the TEI parser:

    ParsedTEIDocument
      ├── Metadata
      └── Section (one per ``text`` element)
            └── Segment (one per ``seg`` element)
                  ├── Word (every ``w`` in the segment)
                  │     └── Anchor (critical-apparatus note)
                  └── Line (``l`` elements carrying a verse number)
                        └── Word

Every instance is created by a single parse call and never mutated
afterwards. JSON field names follow the viewer frontend's camelCase contract
(``lineNumbers``); Python code uses the snake_case attribute names.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

# "<work>.<book>.<line>": only the two trailing integer groups matter
VERSE_ID_PATTERN = re.compile(r"\.([0-9]+)\.([0-9]+)\Z")

UNKNOWN = "unknown"

DEFAULT_TITLE = "Unknown Title"
DEFAULT_AUTHOR = "Unknown Author"
DEFAULT_EDITOR = "Unknown Editor"
DEFAULT_DATE = "Unknown Date"
DEFAULT_LANGUAGE = "Unknown Language"


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    populate_by_name=True,
)


# ---------------------------------------------------------------------
# Verse Keys
# ---------------------------------------------------------------------

def match_verse_number(identifier: Optional[str]) -> Optional[str]:
    """
    Return the ``"book.line"`` string carried by an identifier, or None.

    ``"Theb.5.335"`` -> ``"5.335"``; ``"la.intro"`` -> None. The digits are
    returned exactly as written in the identifier.
    """
    if not identifier:
        return None
    match = VERSE_ID_PATTERN.search(identifier)
    if match is None:
        return None
    book, line = match.groups()
    return f"{book}.{line}"


@dataclass(frozen=True, order=True)
class VerseKey:
    """
    Numeric ``book.line`` pair used to align segments across sections.

    Ordering is numeric on (book, line), so ``2.5`` sorts before ``10.2``.
    Leading zeros are not kept: ``x.05.335`` and ``y.5.335`` share the key
    ``5.335``, while `match_verse_number` and ``Line.number`` keep the digits
    as written (``"05.335"``).
    """

    book: int
    line: int

    @classmethod
    def parse(cls, identifier: Optional[str]) -> Optional["VerseKey"]:
        number = match_verse_number(identifier)
        if number is None:
            return None
        book, line = number.split(".")
        return cls(book=int(book), line=int(line))

    def __str__(self) -> str:
        return f"{self.book}.{self.line}"


# ---------------------------------------------------------------------
# Document Tree
# ---------------------------------------------------------------------

class Anchor(BaseModel):
    """Critical-apparatus note attached to a word. Content is raw text."""

    id: str = ""
    content: str = ""

    model_config = _MODEL_CONFIG


class Word(BaseModel):
    """A lexical token eligible for critical-apparatus annotation."""

    id: str = ""
    content: str = ""
    anchors: List[Anchor] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class Line(BaseModel):
    """One verse line, addressable by its ``book.line`` number."""

    id: str
    number: str
    content: str = ""
    words: List[Word] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class Segment(BaseModel):
    """
    A span of aligned text within one section.

    ``words`` holds every word in the segment, including those that also
    appear in ``lines[*].words``.
    """

    id: str = ""
    content: str = ""
    words: List[Word] = Field(default_factory=list)
    line_numbers: List[str] = Field(default_factory=list, alias="lineNumbers")
    lines: List[Line] = Field(default_factory=list)

    model_config = _MODEL_CONFIG

    @property
    def verse_key(self) -> Optional[VerseKey]:
        return VerseKey.parse(self.id)


class Section(BaseModel):
    """One text layer of the work (source, translation, commentary, ...)."""

    type: str = UNKNOWN
    language: str = UNKNOWN
    id: str = UNKNOWN
    segments: List[Segment] = Field(default_factory=list)

    model_config = _MODEL_CONFIG


class Metadata(BaseModel):
    """Bibliographic description of the whole document."""

    title: str = DEFAULT_TITLE
    author: str = DEFAULT_AUTHOR
    editor: str = DEFAULT_EDITOR
    date: str = DEFAULT_DATE
    language: str = DEFAULT_LANGUAGE

    model_config = _MODEL_CONFIG


class ParsedTEIDocument(BaseModel):
    """Root aggregate returned by the parser."""

    sections: List[Section] = Field(default_factory=list)
    metadata: Metadata = Field(default_factory=Metadata)

    model_config = _MODEL_CONFIG


class AlignedVerse(BaseModel):
    """All segments sharing one verse key, in encounter order."""

    key: str
    segments: List[Segment] = Field(default_factory=list)

    model_config = _MODEL_CONFIG
