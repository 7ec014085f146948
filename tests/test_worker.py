"""Tests for the worker-thread deployment."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from page_search.config import SearchSettings
from page_search.document import TextUnit
from page_search.errors import ResourceUnavailableError, SearchFailedError
from page_search.indexing.chunker import Chunk
from page_search.models import (
    ChunkPayload,
    InitMessage,
    SearchMessage,
    ShutdownMessage,
    worker_response_adapter,
)
from page_search.worker import SearchWorker, WorkerSearchEngine


def _chunk(index: int, *lines: str) -> Chunk:
    units = tuple(TextUnit(text=line, anchor=f"line-{index}-{n}") for n, line in enumerate(lines))
    return Chunk(text=" ".join(lines), units=units, index=index)


def _reply(raw: str | None):
    assert raw is not None
    return worker_response_adapter.validate_json(raw)


def test_worker_init_with_missing_file_replies_error(tmp_path: Path, settings) -> None:
    worker = SearchWorker(settings)

    reply = _reply(
        worker.handle(InitMessage(resource_locator=str(tmp_path / "nope.json")).model_dump_json())
    )

    assert reply.type == "ERROR"
    assert "No such embeddings file" in reply.message


def test_worker_rejects_malformed_message(settings) -> None:
    worker = SearchWorker(settings)

    assert _reply(worker.handle("{not json")).type == "ERROR"
    assert _reply(worker.handle(json.dumps({"type": "EXPLODE"}))).type == "ERROR"


def test_worker_semantic_search_before_init_replies_error(settings) -> None:
    worker = SearchWorker(settings)
    message = SearchMessage(
        query="purchase price",
        mode="semantic",
        chunks=[ChunkPayload(index=0, text="purchase price", units=["purchase price"])],
    )

    reply = _reply(worker.handle(message.model_dump_json()))

    assert reply.type == "ERROR"


def test_worker_exact_search_needs_no_embeddings(settings) -> None:
    worker = SearchWorker(settings)
    message = SearchMessage(
        query="hello",
        mode="exact",
        chunks=[
            ChunkPayload(index=3, text="intro hello there", units=["intro", "hello there"]),
            ChunkPayload(index=4, text="nothing here", units=["nothing here"]),
        ],
    )

    reply = _reply(worker.handle(message.model_dump_json()))

    assert reply.type == "SEARCH_RESULTS"
    assert [(m.chunk_index, m.unit_positions) for m in reply.matches] == [(3, [1])]


def test_worker_shutdown_returns_none(settings) -> None:
    assert SearchWorker(settings).handle(ShutdownMessage().model_dump_json()) is None


@pytest.mark.asyncio
async def test_proxy_engine_round_trip(embeddings_file: Path, settings: SearchSettings) -> None:
    engine = WorkerSearchEngine(settings, embeddings_path=str(embeddings_file))
    chunks = [
        _chunk(0, "Sunny weather today", "with rain later"),
        _chunk(1, "The purchase price", "is the total cost"),
    ]
    try:
        await engine.initialize()
        assert engine.ready

        semantic = await engine.search("purchase price", chunks, "semantic")
        exact = await engine.search("total cost", chunks, "exact")
    finally:
        await engine.close()

    assert [m.chunk for m in semantic] == [chunks[1]]
    assert exact[0].chunk is chunks[1]
    assert exact[0].matched_anchors == ("line-1-1",)
    assert engine.ready is False


@pytest.mark.asyncio
async def test_proxy_engine_reports_load_failure(tmp_path: Path, settings) -> None:
    engine = WorkerSearchEngine(settings, embeddings_path=str(tmp_path / "missing.json"))
    try:
        with pytest.raises(ResourceUnavailableError):
            await engine.initialize()
        assert engine.ready is False

        with pytest.raises(SearchFailedError):
            await engine.search("purchase price", [_chunk(0, "purchase price")], "semantic")
    finally:
        await engine.close()
