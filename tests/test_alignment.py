from tei_viewer_server.tei.alignment import (
    align_document,
    group_by_verse_number,
    ordered_verses,
)
from tei_viewer_server.tei.models import Section, Segment, VerseKey


def _section(*segment_ids, section_id="s"):
    return Section(id=section_id, segments=[Segment(id=sid) for sid in segment_ids])


def test_segments_grouped_across_sections(sample_document):
    grouped = group_by_verse_number(sample_document.sections)

    assert set(grouped) == {VerseKey(5, 335), VerseKey(5, 10)}
    assert [s.id for s in grouped[VerseKey(5, 335)]] == ["la.5.335", "it.5.335", "comm.5.335"]
    assert [s.id for s in grouped[VerseKey(5, 10)]] == ["it.5.10"]


def test_segments_without_verse_key_are_skipped(sample_document):
    grouped = group_by_verse_number(sample_document.sections)
    all_ids = [s.id for segments in grouped.values() for s in segments]
    assert "la.intro" not in all_ids
    assert "" not in all_ids


def test_encounter_order_follows_section_order():
    la = _section("la.5.335", section_id="la")
    it = _section("it.5.335", section_id="it")

    assert [s.id for s in group_by_verse_number([la, it])[VerseKey(5, 335)]] == ["la.5.335", "it.5.335"]
    assert [s.id for s in group_by_verse_number([it, la])[VerseKey(5, 335)]] == ["it.5.335", "la.5.335"]


def test_index_references_document_segments(sample_document):
    grouped = group_by_verse_number(sample_document.sections)
    assert grouped[VerseKey(5, 335)][0] is sample_document.sections[0].segments[0]


def test_empty_input():
    assert group_by_verse_number([]) == {}
    assert ordered_verses({}) == []


def test_ordered_verses_sort_numerically():
    section = _section("x.10.2", "x.2.10", "x.2.5", "x.1.999")
    verses = ordered_verses(group_by_verse_number([section]))
    assert [v.key for v in verses] == ["1.999", "2.5", "2.10", "10.2"]


def test_align_document(sample_document):
    verses = align_document(sample_document)
    assert [v.key for v in verses] == ["5.10", "5.335"]
    assert len(verses[1].segments) == 3


def test_align_document_excluding_first_section(sample_document):
    verses = align_document(sample_document, exclude_first_section=True)
    by_key = {v.key: [s.id for s in v.segments] for v in verses}
    assert by_key == {"5.10": ["it.5.10"], "5.335": ["it.5.335", "comm.5.335"]}
