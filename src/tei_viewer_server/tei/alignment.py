"""
Segment Alignment Index

Groups segments from every section by the verse key in their own
identifier, so the source, translation and commentary for ``5.335`` can be
displayed side by side.

The index is a plain mapping recomputed from a parsed document; it holds
references to the document's `Segment` objects and offers no update path.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .models import AlignedVerse, ParsedTEIDocument, Section, Segment, VerseKey

logger = logging.getLogger("tei.alignment")


def group_by_verse_number(sections: Iterable[Section]) -> Dict[VerseKey, List[Segment]]:
    """
    Map each verse key to the segments carrying it.

    Sections are visited in order, then segments within each section, so
    every list is in encounter order. Segments whose id has no trailing
    ``.<book>.<line>`` are left out.
    """
    grouped: Dict[VerseKey, List[Segment]] = {}
    skipped = 0

    for section in sections:
        for segment in section.segments:
            key = segment.verse_key
            if key is None:
                skipped += 1
                continue
            grouped.setdefault(key, []).append(segment)

    if skipped:
        logger.debug("%d segment(s) without a verse key left unaligned", skipped)

    return grouped


def ordered_verses(grouped: Dict[VerseKey, List[Segment]]) -> List[AlignedVerse]:
    """Display order: ascending book, then ascending line, compared numerically."""
    return [
        AlignedVerse(key=str(key), segments=grouped[key])
        for key in sorted(grouped)
    ]


def align_document(
    document: ParsedTEIDocument,
    exclude_first_section: bool = False,
) -> List[AlignedVerse]:
    """
    Build the ordered verse listing for a parsed document.

    Parameters
    ----------
    document : ParsedTEIDocument
        Output of the parser.

    exclude_first_section : bool
        Drop ``document.sections[0]`` before grouping. Editions often open
        with a continuous "complete text" layer that duplicates the aligned
        ones.
    """
    sections = document.sections[1:] if exclude_first_section else document.sections
    return ordered_verses(group_by_verse_number(sections))
