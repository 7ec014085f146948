"""Tests for document units and chunking."""

from page_search.document import (
    LineAnchor,
    PageAnchor,
    TextUnit,
    split_pages,
    units_from_pages,
    units_from_pairs,
    units_from_text,
)
from page_search.indexing.chunker import UnitChunker

import pytest


def _units(*texts: str) -> list[TextUnit]:
    return [TextUnit(text=text, anchor=f"u{i}") for i, text in enumerate(texts)]


def test_chunker_seals_when_word_threshold_reached() -> None:
    units = _units("one two three", "four five", "six", "seven eight nine ten", "eleven")
    chunker = UnitChunker(chunk_words=5)

    chunks = chunker.chunk_units(units)

    assert [chunk.text for chunk in chunks] == [
        "one two three four five",
        "six seven eight nine ten",
        "eleven",
    ]
    assert [chunk.index for chunk in chunks] == [0, 1, 2]
    assert chunks[0].anchors == ("u0", "u1")


def test_chunker_never_splits_a_unit() -> None:
    long_unit = " ".join(f"w{i}" for i in range(30))
    units = _units("short", long_unit, "tail")

    chunks = UnitChunker(chunk_words=10).chunk_units(units)

    assert len(chunks) == 2
    assert chunks[0].anchors == ("u0", "u1")
    assert chunks[1].text == "tail"


def test_chunking_is_order_preserving_and_anchor_complete() -> None:
    units = _units(*[f"sentence number {i} has a few words" for i in range(37)])

    for size in (1, 7, 20, 50, 1000):
        chunks = UnitChunker(chunk_words=size).chunk_units(units)
        anchors = [anchor for chunk in chunks for anchor in chunk.anchors]
        assert anchors == [unit.anchor for unit in units]
        assert all(chunk.anchors for chunk in chunks)


def test_chunker_empty_input() -> None:
    assert UnitChunker().chunk_units([]) == []


def test_chunker_rejects_non_positive_threshold() -> None:
    with pytest.raises(ValueError):
        UnitChunker(chunk_words=0)


def test_unit_spans_follow_joined_text() -> None:
    units = _units("  alpha beta ", "", "gamma")
    chunk = UnitChunker(chunk_words=100).chunk_units(units)[0]

    assert chunk.text == "alpha beta gamma"
    spans = chunk.unit_spans()
    assert chunk.text[spans[0][0] : spans[0][1]] == "alpha beta"
    assert spans[1][0] == spans[1][1]
    assert chunk.text[spans[2][0] : spans[2][1]] == "gamma"
    assert chunk.units_overlapping(6, 16) == (0, 2)


def test_units_from_text_skips_blank_lines() -> None:
    units = units_from_text("first line\n\n   \n  second line  \n")

    assert [unit.text for unit in units] == ["first line", "second line"]
    assert [unit.anchor for unit in units] == [LineAnchor(1), LineAnchor(4)]


def test_units_from_pages_anchor_page_and_line() -> None:
    pages = split_pages("page one\nmore\fpage two")

    units = units_from_pages(pages)

    assert [unit.anchor for unit in units] == [
        PageAnchor(page=1, line=1),
        PageAnchor(page=1, line=2),
        PageAnchor(page=2, line=1),
    ]


def test_units_from_pairs_keeps_host_anchors() -> None:
    handle = object()

    units = units_from_pairs([("text", handle)])

    assert units[0].anchor is handle
