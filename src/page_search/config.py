"""
Configuration helpers for the search engine.

Every setting resolves from an explicit value, then a ``PAGE_SEARCH_*``
environment variable, then a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any


DEFAULT_EMBEDDINGS_PATH = "~/.page_search/embeddings.json"
ENV_EMBEDDINGS_PATH = "PAGE_SEARCH_EMBEDDINGS_PATH"

_ENV_PREFIX = "PAGE_SEARCH_"


def resolve_embeddings_path(override_path: str | None = None) -> str:
    """
    Resolve the embeddings payload path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) PAGE_SEARCH_EMBEDDINGS_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_EMBEDDINGS_PATH) or DEFAULT_EMBEDDINGS_PATH
    return str(Path(raw_path).expanduser().resolve())


@dataclass(frozen=True)
class SearchSettings:
    """Tunable constants for chunking, matching and admission control."""

    vocab_size: int = 15000
    embedding_dim: int = 50
    similarity_threshold: float = 0.8
    fuzzy_threshold: float = 0.6
    chunk_words: int = 50
    batch_size: int = 10
    cache_size: int = 1000
    rate_limit: int = 10
    rate_window: float = 60.0
    max_results: int = 50
    min_query_length: int = 2
    max_query_length: int = 100
    context_words: int = 10
    prefilter_terms: bool = False

    def __post_init__(self) -> None:
        if self.chunk_words <= 0:
            raise ValueError("chunk_words must be > 0")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be > 0")
        if self.cache_size <= 0:
            raise ValueError("cache_size must be > 0")
        if self.rate_limit <= 0:
            raise ValueError("rate_limit must be > 0")
        if self.rate_window <= 0:
            raise ValueError("rate_window must be > 0")
        if not 0.0 <= self.fuzzy_threshold <= 1.0:
            raise ValueError("fuzzy_threshold must be within [0, 1]")

    @classmethod
    def from_env(cls, **overrides: Any) -> SearchSettings:
        """Build settings from ``PAGE_SEARCH_*`` variables, then explicit overrides."""
        values: dict[str, Any] = {}
        for field in fields(cls):
            raw = os.getenv(f"{_ENV_PREFIX}{field.name.upper()}")
            if raw is not None and raw.strip():
                values[field.name] = _coerce(field.name, field.type, raw)
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _coerce(name: str, annotation: Any, raw: str) -> Any:
    type_name = annotation if isinstance(annotation, str) else annotation.__name__
    text = raw.strip()
    try:
        if type_name == "bool":
            return text.lower() in {"1", "true", "on", "yes"}
        if type_name == "int":
            return int(text)
        if type_name == "float":
            return float(text)
    except ValueError as exc:
        raise ValueError(f"Invalid value for {_ENV_PREFIX}{name.upper()}: {raw!r}") from exc
    return text
