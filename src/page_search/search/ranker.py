"""
Relevance scoring and ordering helpers for match sets.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from ..indexing.chunker import Chunk
from ..models import SearchMode


OrderingPolicy = Literal["document", "score"]

ORDERING_POLICY: dict[SearchMode, OrderingPolicy] = {
    "semantic": "document",
    "exact": "document",
    "fuzzy": "score",
}

EXACT_MATCH_BONUS = 0.2
OVERLAP_WEIGHT = 0.3
LENGTH_PENALTY_WEIGHT = 0.1
IDEAL_LENGTH_FACTOR = 5
IN_ORDER_BONUS = 0.25


@dataclass(frozen=True)
class Match:
    """A chunk accepted by a matcher, with the units responsible for the hit."""

    chunk: Chunk
    score: float
    unit_positions: tuple[int, ...]

    @property
    def matched_anchors(self) -> tuple[Any, ...]:
        return tuple(self.chunk.units[i].anchor for i in self.unit_positions)

    @classmethod
    def whole_chunk(cls, chunk: Chunk, score: float) -> Match:
        return cls(chunk=chunk, score=score, unit_positions=tuple(range(len(chunk.units))))


def relevance_score(chunk_text: str, query: str, similarity: float) -> float:
    """
    Combine cosine similarity with lexical evidence.

    Adds a bonus for a verbatim (case-insensitive) hit, a weighted share of
    query words present in the chunk, and a bonus when multi-word queries
    appear term by term in order; subtracts a penalty proportional to how far
    the chunk length strays from five times the query length.
    """
    text_lower = chunk_text.lower()
    query_lower = query.lower()
    score = similarity

    if query_lower and query_lower in text_lower:
        score += EXACT_MATCH_BONUS

    query_terms = query_lower.split()
    query_words = set(query_terms)
    if query_words:
        chunk_words = set(text_lower.split())
        overlap = len(query_words & chunk_words)
        score += OVERLAP_WEIGHT * (overlap / len(query_words))

    ideal_length = IDEAL_LENGTH_FACTOR * len(query)
    if ideal_length > 0:
        score -= LENGTH_PENALTY_WEIGHT * abs(len(chunk_text) - ideal_length) / ideal_length

    if len(query_terms) > 1 and _terms_in_order(text_lower, query_terms):
        score += IN_ORDER_BONUS

    return score


def _terms_in_order(text_lower: str, terms: list[str]) -> bool:
    last = -1
    for term in terms:
        found = text_lower.find(term, last + 1)
        if found == -1 or found <= last:
            return False
        last = found
    return True


def order_matches(matches: list[Match], policy: OrderingPolicy) -> list[Match]:
    """Sort by document position or by descending score (ties in document order)."""
    if policy == "score":
        return sorted(matches, key=lambda match: (-match.score, match.chunk.index))
    return sorted(matches, key=lambda match: match.chunk.index)


def context_snippet(text: str, query: str, *, context_words: int = 10) -> str:
    """Return up to ``context_words`` words either side of the first query term."""
    words = text.split()
    if not words:
        return ""
    terms = query.lower().split()
    hit = 0
    if terms:
        first = terms[0]
        for position, word in enumerate(words):
            if first in word.lower():
                hit = position
                break
    start = max(0, hit - context_words)
    end = min(len(words), hit + context_words + 1)
    snippet = " ".join(words[start:end])
    if start > 0:
        snippet = "... " + snippet
    if end < len(words):
        snippet = snippet + " ..."
    return snippet
