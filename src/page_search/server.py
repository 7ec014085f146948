"""
FastAPI server exposing the search engine to a host page.

Provides a health endpoint and a WebSocket channel that carries search
requests in and progress, highlight and navigation events out.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Callable, Sequence

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from .config import SearchSettings
from .document import units_from_pages, units_from_text
from .engine import LocalSearchEngine, SearchEngine
from .errors import PageSearchError
from .models import (
    CancelSearchRequest,
    NextMatchRequest,
    PingRequest,
    PrevMatchRequest,
    SessionEvent,
    SetDocumentRequest,
    StartSearchRequest,
    host_request_adapter,
)
from .session import SearchManager

logger = logging.getLogger(__name__)


def _anchor_payload(anchor: Any) -> Any:
    if dataclasses.is_dataclass(anchor) and not isinstance(anchor, type):
        return dataclasses.asdict(anchor)
    return anchor


class QueueHighlighter:
    """Forward highlight changes to the client as WebSocket frames."""

    def __init__(self, outgoing: "asyncio.Queue[dict[str, Any]]") -> None:
        self._outgoing = outgoing

    def apply(self, anchors: Sequence[Any], *, active: bool) -> None:
        self._outgoing.put_nowait(
            {
                "type": "HIGHLIGHT",
                "anchors": [_anchor_payload(anchor) for anchor in anchors],
                "active": active,
            }
        )

    def clear(self) -> None:
        self._outgoing.put_nowait({"type": "CLEAR_HIGHLIGHTS"})


def create_app(
    settings: SearchSettings | None = None,
    engine_factory: Callable[[SearchSettings], SearchEngine] | None = None,
) -> FastAPI:
    """Build the app around one explicitly owned engine instance."""
    resolved_settings = settings or SearchSettings.from_env()
    factory = engine_factory or (lambda s: LocalSearchEngine(s))
    engine = factory(resolved_settings)

    app = FastAPI(title="PageSearch", description="Local semantic, exact and fuzzy page search")
    app.state.settings = resolved_settings
    app.state.engine = engine

    @app.get("/api/health")
    async def health():
        """Report whether the server is up and the embeddings are loaded."""
        return {"status": "ok", "engine_ready": engine.ready}

    @app.websocket("/ws/search")
    async def websocket_search(websocket: WebSocket):
        """
        WebSocket endpoint for one search client.

        Protocol:
        1. Client sends {"type": "SET_DOCUMENT", "text": "..."} or {"pages": [...]}
        2. Client sends {"type": "START_SEARCH", "query": "...", "mode": "semantic"}
        3. Server streams SEARCH_PROGRESS, HIGHLIGHT and CLEAR_HIGHLIGHTS frames
        4. Final event: {"type": "SEARCH_COMPLETE", ...}
        5. NEXT_MATCH / PREV_MATCH answer with MATCH_UPDATE; CANCEL_SEARCH stops a run
        """
        await websocket.accept()
        outgoing: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def on_event(event: SessionEvent) -> None:
            outgoing.put_nowait(event.model_dump())

        manager = SearchManager(
            engine,
            settings=resolved_settings,
            highlighter=QueueHighlighter(outgoing),
            on_event=on_event,
        )

        async def pump() -> None:
            while True:
                frame = await outgoing.get()
                await websocket.send_json(frame)

        async def run_search(request: StartSearchRequest) -> None:
            try:
                await manager.start(request.query, request.mode)
            except PageSearchError as exc:
                outgoing.put_nowait({"type": "ERROR", "message": str(exc)})

        sender = asyncio.create_task(pump())
        searches: set[asyncio.Task[None]] = set()
        try:
            while True:
                data = await websocket.receive_json()
                try:
                    request = host_request_adapter.validate_python(data)
                except ValidationError as exc:
                    outgoing.put_nowait({"type": "ERROR", "message": f"Invalid request: {exc}"})
                    continue

                if isinstance(request, PingRequest):
                    outgoing.put_nowait({"type": "PONG", "engine_ready": engine.ready})
                elif isinstance(request, SetDocumentRequest):
                    if request.pages is not None:
                        units = units_from_pages(request.pages)
                    else:
                        units = units_from_text(request.text or "")
                    manager.set_document(units)
                    outgoing.put_nowait({"type": "DOCUMENT_READY", "units": len(units)})
                elif isinstance(request, StartSearchRequest):
                    task = asyncio.create_task(run_search(request))
                    searches.add(task)
                    task.add_done_callback(searches.discard)
                elif isinstance(request, NextMatchRequest):
                    manager.next_match()
                elif isinstance(request, PrevMatchRequest):
                    manager.previous_match()
                elif isinstance(request, CancelSearchRequest):
                    manager.cancel()
        except WebSocketDisconnect:
            logger.debug("Search client disconnected")
        finally:
            manager.cancel()
            for task in list(searches):
                await task
            sender.cancel()

    return app


app = create_app()


def run_server(host: str = "127.0.0.1", port: int = 8000):
    """Run the FastAPI server."""
    import uvicorn

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
