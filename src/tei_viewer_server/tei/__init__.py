"""
TEI Package

Parsing, text normalization and verse alignment for TEI critical editions.
"""

from .models import (
    AlignedVerse,
    Anchor,
    Line,
    Metadata,
    ParsedTEIDocument,
    Section,
    Segment,
    VerseKey,
    Word,
)
from .parser import MalformedMarkupError, TEIParser, parse_tei
from .alignment import align_document, group_by_verse_number, ordered_verses
from .normalizer import normalize, normalize_text

__all__ = [
    "AlignedVerse",
    "Anchor",
    "Line",
    "Metadata",
    "ParsedTEIDocument",
    "Section",
    "Segment",
    "VerseKey",
    "Word",
    "MalformedMarkupError",
    "TEIParser",
    "parse_tei",
    "align_document",
    "group_by_verse_number",
    "ordered_verses",
    "normalize",
    "normalize_text",
]
