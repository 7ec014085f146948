"""Tests for loading and building the embeddings payload."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from page_search.errors import ResourceUnavailableError
from page_search.vocabulary import (
    EmbeddingTable,
    convert_glove,
    load_embedding_table,
    write_payload,
)


def test_load_embedding_table_from_file(embeddings_file: Path) -> None:
    table = load_embedding_table(embeddings_file, vocab_size=9, dim=4)

    assert table.vocab_size == 9
    assert table.dim == 4
    assert table.indices(["hello", "missing", "ghost", "rain"]) == [7, 6]


def test_load_embedding_table_rejects_dimension_mismatch(embeddings_file: Path) -> None:
    with pytest.raises(ResourceUnavailableError, match="dimension"):
        load_embedding_table(embeddings_file, vocab_size=9, dim=50)
    with pytest.raises(ResourceUnavailableError, match="rows"):
        load_embedding_table(embeddings_file, vocab_size=15000, dim=4)


def test_load_embedding_table_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ResourceUnavailableError, match="No such embeddings file"):
        load_embedding_table(tmp_path / "nope.json")


def test_load_embedding_table_bad_json(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(ResourceUnavailableError):
        load_embedding_table(path)


def test_from_payload_requires_both_keys() -> None:
    with pytest.raises(ResourceUnavailableError):
        EmbeddingTable.from_payload({"vocabulary": {"a": 0}})
    with pytest.raises(ResourceUnavailableError):
        EmbeddingTable.from_payload({"vocabulary": {}, "embeddings": [[1.0, 2.0], [1.0]]})


def test_table_matrix_is_read_only(table) -> None:
    with pytest.raises(ValueError):
        table.matrix[0, 0] = 5.0


def test_convert_glove_skips_malformed_lines_and_caps_vocab() -> None:
    lines = [
        "the 0.1 0.2 0.3",
        "broken 0.1",
        "cat 1 2 3",
        "dog 4 5 x",
        "fish 7 8 9",
        "bird 1 1 1",
    ]

    payload = convert_glove(lines, vocab_size=3, dim=3)

    assert payload["vocabulary"] == {"the": 0, "cat": 1, "fish": 2}
    assert payload["embeddings"][1] == [1.0, 2.0, 3.0]


def test_write_payload_round_trips_through_loader(tmp_path: Path) -> None:
    payload = convert_glove(["alpha 1 0", "beta 0 1"], vocab_size=10, dim=2)

    written = write_payload(payload, tmp_path / "nested" / "embeddings.json")

    assert json.loads(written.read_text())["vocabulary"] == {"alpha": 0, "beta": 1}
    table = load_embedding_table(written, vocab_size=2, dim=2)
    assert table.indices(["beta"]) == [1]
