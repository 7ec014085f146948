"""
Search session lifecycle and match navigation.

A ``SearchManager`` owns the current document, its chunks and the one live
``SearchSession``. Each search walks the chunks in fixed-size batches and
yields to the event loop between batches, so a cancellation requested from
another task (or thread) is observed before the next batch starts.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Protocol, Sequence

from .config import SearchSettings
from .document import TextUnit
from .engine import SearchEngine
from .errors import RateLimitExceededError
from .indexing.chunker import Chunk, UnitChunker
from .models import (
    MatchUpdateEvent,
    SearchCompleteEvent,
    SearchMode,
    SearchProgressEvent,
    SessionEvent,
    SessionState,
)
from .rate_limiter import TokenBucket
from .search import ORDERING_POLICY, Match, order_matches
from .tokenizer import validate_query


logger = logging.getLogger(__name__)

EventSink = Callable[[SessionEvent], None]


class CancellationToken:
    """One-way cancellation flag, safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Highlighter(Protocol):
    """Presentation layer that marks matched anchors in the host document."""

    def apply(self, anchors: Sequence[Any], *, active: bool) -> None:
        """Highlight *anchors*; ``active`` marks the current match."""

    def clear(self) -> None:
        """Remove every highlight."""


class NullHighlighter:
    def apply(self, anchors: Sequence[Any], *, active: bool) -> None:
        return None

    def clear(self) -> None:
        return None


@dataclass
class SearchSession:
    """State of one query: its matches, the active match and its lifecycle."""

    query: str
    mode: SearchMode
    matches: list[Match] = field(default_factory=list)
    active_index: int = -1
    state: SessionState = "idle"
    error: str | None = None
    token: CancellationToken = field(default_factory=CancellationToken)
    _finished: asyncio.Event = field(default_factory=asyncio.Event, init=False, repr=False)

    @property
    def is_terminal(self) -> bool:
        return self.state in ("completed", "cancelled", "failed")

    @property
    def active_match(self) -> Match | None:
        if 0 <= self.active_index < len(self.matches):
            return self.matches[self.active_index]
        return None

    def add_matches(self, matches: Iterable[Match]) -> None:
        self.matches.extend(matches)
        if self.matches and self.active_index == -1:
            self.active_index = 0

    def next_match(self) -> int:
        """Move to the next match, wrapping to the first."""
        if self.matches:
            self.active_index = (self.active_index + 1) % len(self.matches)
        return self.active_index

    def previous_match(self) -> int:
        """Move to the previous match, wrapping to the last."""
        if self.matches:
            total = len(self.matches)
            self.active_index = (self.active_index - 1 + total) % total
        return self.active_index

    def complete(self, matches: list[Match]) -> None:
        self.matches = matches
        self.active_index = 0 if matches else -1
        self._finish("completed")

    def mark_cancelled(self) -> None:
        self.matches = []
        self.active_index = -1
        self._finish("cancelled")

    def fail(self, reason: str) -> None:
        self.matches = []
        self.active_index = -1
        self.error = reason
        self._finish("failed")

    def _finish(self, state: SessionState) -> None:
        self.state = state
        self._finished.set()

    async def wait_finished(self) -> None:
        """Wait until the session reaches a terminal state."""
        await self._finished.wait()


class SearchManager:
    """
    Run searches over the current document, one live session at a time.

    Starting a search validates the query (without touching the rate limiter
    when invalid), takes an admission token, cancels the previous session and
    waits for it to stop, then scans the chunks batch by batch. A session
    cancelled while still waiting ends without scanning anything.
    """

    def __init__(
        self,
        engine: SearchEngine,
        *,
        settings: SearchSettings | None = None,
        rate_limiter: TokenBucket | None = None,
        chunker: UnitChunker | None = None,
        highlighter: Highlighter | None = None,
        on_event: EventSink | None = None,
    ) -> None:
        self.engine = engine
        self.settings = settings or SearchSettings()
        self.rate_limiter = rate_limiter or TokenBucket(
            self.settings.rate_limit, self.settings.rate_window
        )
        self.chunker = chunker or UnitChunker(self.settings.chunk_words)
        self.highlighter: Highlighter = highlighter or NullHighlighter()
        self.on_event = on_event
        self.session = SearchSession(query="", mode="semantic")
        self._live: SearchSession | None = None
        self._units: list[TextUnit] = []
        self._chunks: list[Chunk] | None = None

    # ------------------------------------------------------------------
    # Document
    # ------------------------------------------------------------------

    def set_document(self, units: Iterable[TextUnit]) -> None:
        """Select a new search target; cached chunks are discarded."""
        self.cancel()
        self._units = list(units)
        self._chunks = None

    def chunks(self) -> list[Chunk]:
        """Chunks of the current document, built on first use."""
        if self._chunks is None:
            self._chunks = self.chunker.chunk_units(self._units)
            logger.debug("Chunked %d units into %d chunks", len(self._units), len(self._chunks))
        return self._chunks

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, query: str, mode: SearchMode = "semantic") -> SearchSession:
        """
        Run a search to completion, cancellation or failure.

        Raises ``InvalidQueryError`` and ``RateLimitExceededError`` before any
        session is created, and ``ResourceUnavailableError`` when semantic
        search needs embeddings that cannot be loaded.

        The new session becomes current before the previous one has stopped,
        so a later ``start()`` cancels it even while it is still waiting.
        """
        cleaned = validate_query(
            query,
            min_length=self.settings.min_query_length,
            max_length=self.settings.max_query_length,
        )
        if not self.rate_limiter.try_acquire():
            logger.warning("Rate limit exceeded for query %r", cleaned)
            raise RateLimitExceededError()
        if mode == "semantic" and not self.engine.ready:
            await self.engine.initialize()

        previous = self._live
        session = SearchSession(query=cleaned, mode=mode)
        self._live = session
        self.session = session
        if previous is not None:
            await self._supersede(previous)

        if session.token.cancelled:
            logger.debug("Search for %r superseded before it started", session.query)
            session.mark_cancelled()
            self._emit_complete(session)
            return session
        await self._run(session)
        return session

    def cancel(self) -> bool:
        """Request cancellation of the live session, if any."""
        live = self._live
        if live is None or live.is_terminal:
            return False
        live.token.cancel()
        return True

    async def close(self) -> None:
        self.cancel()
        await self.engine.close()

    async def _supersede(self, previous: SearchSession) -> None:
        if previous.is_terminal:
            return
        logger.debug("Cancelling search for %r", previous.query)
        previous.token.cancel()
        await previous.wait_finished()

    async def _run(self, session: SearchSession) -> None:
        session.state = "running"
        self.highlighter.clear()
        batch_size = self.settings.batch_size
        logger.info("Searching %r in %s mode", session.query, session.mode)

        try:
            chunks = self.chunks()
            for start in range(0, len(chunks), batch_size):
                if session.token.cancelled:
                    break
                batch = chunks[start : start + batch_size]
                found = await self.engine.search(session.query, batch, session.mode)
                session.add_matches(found)
                for match in found:
                    self.highlighter.apply(match.matched_anchors, active=False)
                self._emit(SearchProgressEvent(count=len(session.matches)))
                await asyncio.sleep(0)
        except Exception as exc:
            logger.exception("Search for %r failed", session.query)
            self.highlighter.clear()
            session.fail(str(exc) or exc.__class__.__name__)
            self._emit_complete(session)
            return

        if session.token.cancelled:
            self.highlighter.clear()
            session.mark_cancelled()
            logger.info("Search for %r cancelled", session.query)
        else:
            found_count = len(session.matches)
            ordered = order_matches(session.matches, ORDERING_POLICY[session.mode])
            ordered = ordered[: self.settings.max_results]
            session.complete(ordered)
            if len(ordered) < found_count:
                self.highlighter.clear()
                for match in ordered:
                    self.highlighter.apply(match.matched_anchors, active=False)
            if session.active_match is not None:
                self.highlighter.apply(session.active_match.matched_anchors, active=True)
            logger.info("Search for %r found %d matches", session.query, len(ordered))
        self._emit_complete(session)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def next_match(self) -> int:
        return self._navigate(self.session.next_match)

    def previous_match(self) -> int:
        return self._navigate(self.session.previous_match)

    def _navigate(self, move: Callable[[], int]) -> int:
        session = self.session
        if not session.matches:
            return session.active_index
        previous = session.active_match
        index = move()
        if previous is not None:
            self.highlighter.apply(previous.matched_anchors, active=False)
        if session.active_match is not None:
            self.highlighter.apply(session.active_match.matched_anchors, active=True)
        self._emit(MatchUpdateEvent(current_index=index, total_matches=len(session.matches)))
        return index

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def _emit(self, event: SessionEvent) -> None:
        if self.on_event is not None:
            self.on_event(event)

    def _emit_complete(self, session: SearchSession) -> None:
        self._emit(
            SearchCompleteEvent(
                state=session.state,
                count=len(session.matches),
                current_index=session.active_index,
                total_matches=len(session.matches),
                error=session.error,
            )
        )
