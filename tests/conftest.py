import json
from pathlib import Path
from typing import Any, Sequence

import pytest

from page_search.config import SearchSettings
from page_search.indexing.chunker import Chunk
from page_search.search import Match
from page_search.vocabulary import EmbeddingTable


WORD_VECTORS: dict[str, list[float]] = {
    "purchase": [1.0, 0.1, 0.0, 0.0],
    "price": [0.9, 0.2, 0.0, 0.0],
    "cost": [0.95, 0.15, 0.0, 0.0],
    "buy": [1.0, 0.0, 0.1, 0.0],
    "weather": [0.0, 0.0, 1.0, 0.1],
    "sunny": [0.0, 0.1, 0.9, 0.0],
    "rain": [0.0, 0.0, 0.95, 0.2],
    "hello": [0.0, 0.0, 0.0, 1.0],
    "world": [0.1, 0.0, 0.0, 1.0],
}

PAYLOAD: dict[str, Any] = {
    "vocabulary": {
        **{word: index for index, word in enumerate(WORD_VECTORS)},
        # points past the end of the matrix and must be ignored
        "ghost": 99,
    },
    "embeddings": list(WORD_VECTORS.values()),
}


@pytest.fixture()
def payload() -> dict[str, Any]:
    return json.loads(json.dumps(PAYLOAD))


@pytest.fixture()
def table(payload) -> EmbeddingTable:
    return EmbeddingTable.from_payload(payload)


@pytest.fixture()
def embeddings_file(tmp_path: Path, payload) -> Path:
    path = tmp_path / "embeddings.json"
    path.write_text(json.dumps(payload))
    return path


@pytest.fixture()
def settings() -> SearchSettings:
    return SearchSettings(vocab_size=len(WORD_VECTORS), embedding_dim=4)


class RecordingHighlighter:
    """Keeps every highlight call for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...], bool]] = []

    def apply(self, anchors: Sequence[Any], *, active: bool) -> None:
        self.calls.append(("apply", tuple(anchors), active))

    def clear(self) -> None:
        self.calls.append(("clear", (), False))

    @property
    def last(self) -> tuple[str, tuple[Any, ...], bool]:
        return self.calls[-1]


class CountingEngine:
    """Engine fake that accepts every chunk and counts processed chunks."""

    ready = True

    def __init__(self, on_batch=None) -> None:
        self.on_batch = on_batch
        self.batches = 0
        self.processed = 0

    async def initialize(self) -> None:
        return None

    async def search(self, query: str, chunks: Sequence[Chunk], mode: str) -> list[Match]:
        self.batches += 1
        self.processed += len(chunks)
        if self.on_batch is not None:
            self.on_batch(self.batches)
        return [Match.whole_chunk(chunk, float(chunk.index)) for chunk in chunks]

    async def close(self) -> None:
        return None
