"""
Word vocabulary and dense embedding table.

The table is loaded once from a JSON payload shaped like
``{"vocabulary": {word: index}, "embeddings": [[float, ...], ...]}`` and is
read-only afterwards, so any number of readers may share it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import numpy as np

from .errors import ResourceUnavailableError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmbeddingTable:
    """Immutable word -> row mapping plus an N x D float matrix."""

    vocabulary: Mapping[str, int]
    matrix: np.ndarray

    @property
    def vocab_size(self) -> int:
        return int(self.matrix.shape[0])

    @property
    def dim(self) -> int:
        return int(self.matrix.shape[1])

    def indices(self, tokens: Iterable[str]) -> list[int]:
        """Map tokens to matrix rows, dropping unknown and out-of-range words."""
        resolved: list[int] = []
        for token in tokens:
            index = self.vocabulary.get(token)
            if index is not None and 0 <= index < self.vocab_size:
                resolved.append(index)
        return resolved

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        vocab_size: int | None = None,
        dim: int | None = None,
    ) -> EmbeddingTable:
        """
        Build a table from a decoded payload.

        When ``vocab_size`` or ``dim`` are given, the payload's matrix must have
        exactly that shape.
        """
        vocabulary = payload.get("vocabulary")
        rows = payload.get("embeddings")
        if not isinstance(vocabulary, dict) or not isinstance(rows, list):
            raise ResourceUnavailableError(
                "Embedding payload must contain 'vocabulary' and 'embeddings'"
            )

        try:
            matrix = np.asarray(rows, dtype=np.float32)
        except (TypeError, ValueError) as exc:
            raise ResourceUnavailableError(f"Malformed embedding matrix: {exc}") from exc

        if matrix.ndim != 2:
            raise ResourceUnavailableError(
                f"Embedding matrix must be 2-dimensional, got shape {matrix.shape}"
            )
        if vocab_size is not None and matrix.shape[0] != vocab_size:
            raise ResourceUnavailableError(
                f"Expected {vocab_size} embedding rows, payload has {matrix.shape[0]}"
            )
        if dim is not None and matrix.shape[1] != dim:
            raise ResourceUnavailableError(
                f"Expected embedding dimension {dim}, payload has {matrix.shape[1]}"
            )

        matrix.setflags(write=False)
        words: dict[str, int] = {}
        for word, index in vocabulary.items():
            if isinstance(word, str) and isinstance(index, int):
                words[word] = index
        return cls(vocabulary=words, matrix=matrix)


def load_embedding_table(
    path: str | Path,
    *,
    vocab_size: int | None = None,
    dim: int | None = None,
) -> EmbeddingTable:
    """Read and validate the embeddings payload at *path*."""
    resolved = Path(path)
    try:
        with resolved.open("r", encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as exc:
        raise ResourceUnavailableError(f"No such embeddings file: {resolved}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise ResourceUnavailableError(f"Could not read embeddings from {resolved}: {exc}") from exc

    if not isinstance(payload, dict):
        raise ResourceUnavailableError("Embedding payload must be a JSON object")

    table = EmbeddingTable.from_payload(payload, vocab_size=vocab_size, dim=dim)
    logger.info(
        "Loaded %d word embeddings (dim=%d) from %s",
        table.vocab_size,
        table.dim,
        resolved,
    )
    return table


def convert_glove(
    lines: Iterable[str],
    *,
    vocab_size: int = 20000,
    dim: int = 50,
) -> dict[str, Any]:
    """
    Convert GloVe text lines (``word v1 ... vD``) into an embeddings payload.

    Lines with the wrong number of fields are skipped. At most ``vocab_size``
    words are kept, in file order.
    """
    vocabulary: dict[str, int] = {}
    embeddings: list[list[float]] = []
    for line in lines:
        if len(embeddings) >= vocab_size:
            break
        parts = line.strip().split(" ")
        if len(parts) != dim + 1:
            continue
        try:
            vector = [float(value) for value in parts[1:]]
        except ValueError:
            continue
        vocabulary[parts[0]] = len(embeddings)
        embeddings.append(vector)
    return {"vocabulary": vocabulary, "embeddings": embeddings}


def write_payload(payload: Mapping[str, Any], output_path: str | Path) -> Path:
    """Write an embeddings payload as compact JSON, creating parent folders."""
    resolved = Path(output_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    with resolved.open("w", encoding="utf-8") as f:
        json.dump(payload, f, separators=(",", ":"))
    return resolved
