"""
Helpers that turn plain text into anchored text units.

Anchors are opaque to the engine. These helpers produce simple line and page
anchors for callers that search plain text files or per-page PDF text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Hashable, Iterable, Sequence


@dataclass(frozen=True)
class TextUnit:
    """One piece of document text plus a non-owning reference to where it lives."""

    text: str
    anchor: Hashable | Any


@dataclass(frozen=True)
class LineAnchor:
    line: int


@dataclass(frozen=True)
class PageAnchor:
    page: int
    line: int


def units_from_text(text: str) -> list[TextUnit]:
    """Split text into one unit per non-blank line, anchored by 1-based line number."""
    units: list[TextUnit] = []
    for number, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if stripped:
            units.append(TextUnit(text=stripped, anchor=LineAnchor(line=number)))
    return units


def units_from_pages(pages: Sequence[str]) -> list[TextUnit]:
    """Turn extracted per-page text into units anchored by (page, line), 1-based."""
    units: list[TextUnit] = []
    for page_number, page_text in enumerate(pages, start=1):
        for line_number, line in enumerate(page_text.splitlines(), start=1):
            stripped = line.strip()
            if stripped:
                units.append(
                    TextUnit(
                        text=stripped,
                        anchor=PageAnchor(page=page_number, line=line_number),
                    )
                )
    return units


def units_from_pairs(pairs: Iterable[tuple[str, Any]]) -> list[TextUnit]:
    """Wrap host-supplied ``(text, anchor)`` pairs."""
    return [TextUnit(text=text, anchor=anchor) for text, anchor in pairs]


def split_pages(text: str) -> list[str]:
    """Split text on form feeds, the page separator used by ``pdftotext``."""
    return text.split("\f")
