"""
Text normalization for embedding lookup and query validation.
"""

from __future__ import annotations

import re

from .errors import InvalidQueryError


_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_UNSAFE_RE = re.compile(r"[<>]")

MIN_TOKEN_LENGTH = 3


def tokenize(text: str) -> list[str]:
    """
    Lowercase, drop everything but ``[a-z0-9]`` and whitespace, split on
    whitespace and keep tokens longer than two characters.
    """
    cleaned = _NON_ALNUM_RE.sub("", text.lower())
    return [word for word in cleaned.split() if len(word) >= MIN_TOKEN_LENGTH]


def sanitize_query(query: str) -> str:
    """Remove angle brackets and surrounding whitespace."""
    return _UNSAFE_RE.sub("", query).strip()


def validate_query(query: str, *, min_length: int = 2, max_length: int = 100) -> str:
    """Return the sanitized query or raise ``InvalidQueryError``."""
    cleaned = sanitize_query(query or "")
    if not cleaned:
        raise InvalidQueryError("Search query is empty")
    if len(cleaned) < min_length:
        raise InvalidQueryError("Search pattern too short")
    if len(cleaned) > max_length:
        raise InvalidQueryError("Search pattern too long")
    return cleaned
