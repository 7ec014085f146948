"""
Worker-thread deployment of the search engine.

``SearchWorker`` owns a ``LocalSearchEngine`` on a dedicated thread and talks
to callers only through JSON messages on two queues. ``WorkerSearchEngine`` is
the caller-side proxy implementing the same ``SearchEngine`` contract.

Any exception raised while handling a message is turned into an ``ERROR``
reply, so a failing search never breaks the channel.
"""

from __future__ import annotations

import asyncio
import logging
import queue
import threading
from typing import Sequence

from .config import SearchSettings, resolve_embeddings_path
from .document import TextUnit
from .engine import LocalSearchEngine
from .errors import ResourceUnavailableError, SearchFailedError
from .indexing.chunker import Chunk
from .models import (
    ChunkPayload,
    ErrorMessage,
    InitCompleteMessage,
    InitMessage,
    MatchPayload,
    SearchMessage,
    SearchMode,
    SearchResultsMessage,
    ShutdownMessage,
    WorkerResponse,
    worker_request_adapter,
    worker_response_adapter,
)
from .search import Match


logger = logging.getLogger(__name__)


class SearchWorker:
    """Message handler that runs inside the worker thread."""

    def __init__(self, settings: SearchSettings | None = None) -> None:
        self.settings = settings or SearchSettings()
        self.engine = LocalSearchEngine(self.settings)

    def handle(self, raw_message: str) -> str | None:
        """
        Handle one JSON request and return the JSON reply.

        Returns ``None`` for ``SHUTDOWN``.
        """
        try:
            message = worker_request_adapter.validate_json(raw_message)
            if isinstance(message, ShutdownMessage):
                return None
            if isinstance(message, InitMessage):
                reply: WorkerResponse = self._initialize(message)
            else:
                reply = self._search(message)
        except Exception as exc:
            logger.exception("Worker failed to handle message")
            reply = ErrorMessage(message=str(exc) or exc.__class__.__name__)
        return reply.model_dump_json()

    def _initialize(self, message: InitMessage) -> InitCompleteMessage:
        if not self.engine.ready:
            self.engine.embeddings_path = message.resource_locator
            self.engine.load()
        return InitCompleteMessage()

    def _search(self, message: SearchMessage) -> SearchResultsMessage:
        chunks = [
            Chunk(
                text=payload.text,
                units=tuple(
                    TextUnit(text=text, anchor=position)
                    for position, text in enumerate(payload.units)
                ),
                index=payload.index,
            )
            for payload in message.chunks
        ]
        matches = self.engine.search_sync(message.query, chunks, message.mode)
        return SearchResultsMessage(
            matches=[
                MatchPayload(
                    chunk_index=match.chunk.index,
                    score=match.score,
                    unit_positions=list(match.unit_positions),
                )
                for match in matches
            ]
        )

    def run(self, inbox: queue.Queue[str], outbox: queue.Queue[str]) -> None:
        """Serve requests from *inbox* until ``SHUTDOWN``."""
        while True:
            reply = self.handle(inbox.get())
            if reply is None:
                break
            outbox.put(reply)


class WorkerSearchEngine:
    """``SearchEngine`` proxy that forwards requests to a ``SearchWorker`` thread."""

    def __init__(
        self,
        settings: SearchSettings | None = None,
        *,
        embeddings_path: str | None = None,
    ) -> None:
        self.settings = settings or SearchSettings()
        self.embeddings_path = embeddings_path
        self._inbox: queue.Queue[str] = queue.Queue()
        self._outbox: queue.Queue[str] = queue.Queue()
        self._thread: threading.Thread | None = None
        self._lock = asyncio.Lock()
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    async def initialize(self) -> None:
        if self._ready:
            return
        self._ensure_started()
        reply = await self._request(
            InitMessage(resource_locator=resolve_embeddings_path(self.embeddings_path))
        )
        if isinstance(reply, ErrorMessage):
            raise ResourceUnavailableError(reply.message)
        self._ready = True

    async def search(
        self, query: str, chunks: Sequence[Chunk], mode: SearchMode
    ) -> list[Match]:
        self._ensure_started()
        by_index = {chunk.index: chunk for chunk in chunks}
        reply = await self._request(
            SearchMessage(
                query=query,
                mode=mode,
                chunks=[
                    ChunkPayload(
                        index=chunk.index,
                        text=chunk.text,
                        units=[unit.text for unit in chunk.units],
                    )
                    for chunk in chunks
                ],
            )
        )
        if isinstance(reply, ErrorMessage):
            raise SearchFailedError(reply.message)
        if not isinstance(reply, SearchResultsMessage):
            raise SearchFailedError(f"Unexpected worker reply: {reply.type}")
        return [
            Match(
                chunk=by_index[payload.chunk_index],
                score=payload.score,
                unit_positions=tuple(payload.unit_positions),
            )
            for payload in reply.matches
        ]

    async def close(self) -> None:
        if self._thread is None:
            return
        self._inbox.put(ShutdownMessage().model_dump_json())
        await asyncio.to_thread(self._thread.join)
        self._thread = None
        self._ready = False

    def _ensure_started(self) -> None:
        if self._thread is not None:
            return
        worker = SearchWorker(self.settings)
        self._thread = threading.Thread(
            target=worker.run,
            args=(self._inbox, self._outbox),
            name="page-search-worker",
            daemon=True,
        )
        self._thread.start()

    async def _request(self, message: InitMessage | SearchMessage) -> WorkerResponse:
        async with self._lock:
            self._inbox.put(message.model_dump_json())
            raw_reply = await asyncio.to_thread(self._outbox.get)
        return worker_response_adapter.validate_json(raw_reply)
