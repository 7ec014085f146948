"""
Case-insensitive substring matcher.
"""

from __future__ import annotations

from typing import Sequence

from ..indexing.chunker import Chunk
from .ranker import Match


class ExactSearchEngine:
    """
    Match chunks containing the query verbatim, ignoring case.

    A hit is narrowed to the units whose own text contains the query, and a
    chunk where no single unit does is dropped. With ``span_boundaries`` set,
    such a chunk is kept and reported on the units the hit spans instead.
    """

    def __init__(self, *, span_boundaries: bool = False) -> None:
        self.span_boundaries = span_boundaries

    def match(self, chunks: Sequence[Chunk], query: str) -> list[Match]:
        needle = query.lower()
        if not needle:
            return []

        matches: list[Match] = []
        for chunk in chunks:
            haystack = chunk.text.lower()
            found = haystack.find(needle)
            if found == -1:
                continue

            positions = tuple(
                position
                for position, unit in enumerate(chunk.units)
                if needle in unit.text.lower()
            )
            if not positions and self.span_boundaries:
                positions = chunk.units_overlapping(found, found + len(needle))
            if not positions:
                continue
            matches.append(Match(chunk=chunk, score=1.0, unit_positions=positions))
        return matches
