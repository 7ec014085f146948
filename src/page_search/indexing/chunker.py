"""
Chunking utilities for document text units.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from ..document import TextUnit


@dataclass(frozen=True)
class Chunk:
    """A run of consecutive text units matched as one piece of text."""

    text: str
    units: tuple[TextUnit, ...]
    index: int

    @property
    def anchors(self) -> tuple[Any, ...]:
        return tuple(unit.anchor for unit in self.units)

    def unit_spans(self) -> list[tuple[int, int]]:
        """Character range of each unit inside ``text``; blank units are empty ranges."""
        spans: list[tuple[int, int]] = []
        offset = 0
        for unit in self.units:
            part = unit.text.strip()
            if not part:
                spans.append((offset, offset))
                continue
            if offset > 0:
                offset += 1
            spans.append((offset, offset + len(part)))
            offset += len(part)
        return spans

    def units_overlapping(self, start: int, end: int) -> tuple[int, ...]:
        """Positions of units whose text overlaps ``text[start:end]``."""
        return tuple(
            position
            for position, (unit_start, unit_end) in enumerate(self.unit_spans())
            if unit_start < unit_end and unit_start < end and start < unit_end
        )


class UnitChunker:
    """
    Word-count chunker that never splits a text unit.

    Units accumulate until the buffer holds at least ``chunk_words`` words,
    then the buffer is sealed. A short remainder becomes the last chunk.
    """

    def __init__(self, chunk_words: int = 50) -> None:
        if chunk_words <= 0:
            raise ValueError("chunk_words must be > 0")
        self.chunk_words = chunk_words

    def chunk_units(self, units: Iterable[TextUnit]) -> list[Chunk]:
        chunks: list[Chunk] = []
        buffer: list[TextUnit] = []
        word_count = 0

        for unit in units:
            buffer.append(unit)
            word_count += len(unit.text.split())
            if word_count >= self.chunk_words:
                chunks.append(self._seal(buffer, len(chunks)))
                buffer = []
                word_count = 0

        if buffer:
            chunks.append(self._seal(buffer, len(chunks)))
        return chunks

    @staticmethod
    def _seal(buffer: list[TextUnit], index: int) -> Chunk:
        text = " ".join(part for part in (unit.text.strip() for unit in buffer) if part)
        return Chunk(text=text, units=tuple(buffer), index=index)
