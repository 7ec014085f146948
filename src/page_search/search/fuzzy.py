"""
Approximate matcher based on ``difflib`` alignment ratios.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher
from typing import Sequence

from ..indexing.chunker import Chunk
from .ranker import Match


_WORD_RE = re.compile(r"\S+")


class FuzzySearchEngine:
    """
    Match chunks containing a word window that approximately equals the query.

    ``threshold`` is a distance in [0, 1]: 0 accepts only exact alignments,
    1 accepts anything. A chunk matches when ``1 - best_ratio <= threshold``.
    The match score is the best ratio.
    """

    def __init__(self, threshold: float = 0.6) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("threshold must be within [0, 1]")
        self.threshold = threshold

    def match(self, chunks: Sequence[Chunk], query: str) -> list[Match]:
        needle = " ".join(query.lower().split())
        if not needle:
            return []

        matches: list[Match] = []
        for chunk in chunks:
            ratio, start, end = self.best_alignment(chunk.text, needle)
            if 1.0 - ratio > self.threshold:
                continue
            positions = chunk.units_overlapping(start, end)
            if not positions:
                positions = tuple(range(len(chunk.units)))
            matches.append(Match(chunk=chunk, score=ratio, unit_positions=positions))
        return matches

    @staticmethod
    def best_alignment(text: str, needle: str) -> tuple[float, int, int]:
        """
        Best ``SequenceMatcher`` ratio between *needle* and any window of
        words in *text*, with the window's character range.
        """
        lowered = text.lower()
        verbatim = lowered.find(needle)
        if verbatim != -1:
            return 1.0, verbatim, verbatim + len(needle)

        words = [(m.group(0), m.start(), m.end()) for m in _WORD_RE.finditer(lowered)]
        if not words:
            return 0.0, 0, 0

        width = len(needle.split())
        sizes = sorted({max(1, width - 1), width, width + 1})
        matcher = SequenceMatcher(None, autojunk=False)
        matcher.set_seq2(needle)

        best = (0.0, 0, 0)
        for size in sizes:
            if size > len(words):
                size = len(words)
            for first in range(len(words) - size + 1):
                window = " ".join(word for word, _, _ in words[first : first + size])
                matcher.set_seq1(window)
                if matcher.real_quick_ratio() <= best[0] or matcher.quick_ratio() <= best[0]:
                    continue
                ratio = matcher.ratio()
                if ratio > best[0]:
                    best = (ratio, words[first][1], words[first + size - 1][2])
        return best
