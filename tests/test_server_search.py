"""Tests for the health endpoint and the /ws/search WebSocket channel."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from page_search.config import SearchSettings
from page_search.engine import LocalSearchEngine
from page_search.server import create_app


DOCUMENT = "\n".join(
    [
        "Sunny weather with some rain later today",
        "The purchase price is the total cost",
        "Hello world and hello again",
        "Nothing else to see here at all",
    ]
)


@pytest.fixture()
def client(table) -> TestClient:
    settings = SearchSettings(vocab_size=9, embedding_dim=4, chunk_words=5, batch_size=2)
    app = create_app(settings, engine_factory=lambda s: LocalSearchEngine(s, table=table))
    return TestClient(app)


def _receive_until(websocket, frame_type: str) -> list[dict[str, Any]]:
    frames = []
    while True:
        frame = websocket.receive_json()
        frames.append(frame)
        if frame["type"] == frame_type:
            return frames


def test_health_reports_engine_state(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "engine_ready": True}


def test_ping_answers_pong(client: TestClient) -> None:
    with client.websocket_connect("/ws/search") as websocket:
        websocket.send_json({"type": "PING"})
        assert websocket.receive_json() == {"type": "PONG", "engine_ready": True}


def test_invalid_request_returns_error(client: TestClient) -> None:
    with client.websocket_connect("/ws/search") as websocket:
        websocket.send_json({"type": "LAUNCH_ROCKETS"})
        frame = websocket.receive_json()

    assert frame["type"] == "ERROR"
    assert frame["message"].startswith("Invalid request")


def test_exact_search_streams_highlights_and_navigation(client: TestClient) -> None:
    with client.websocket_connect("/ws/search") as websocket:
        websocket.send_json({"type": "SET_DOCUMENT", "text": DOCUMENT})
        assert websocket.receive_json() == {"type": "DOCUMENT_READY", "units": 4}

        websocket.send_json({"type": "START_SEARCH", "query": "hello", "mode": "exact"})
        frames = _receive_until(websocket, "SEARCH_COMPLETE")

        assert frames[0] == {"type": "CLEAR_HIGHLIGHTS"}
        assert any(frame["type"] == "SEARCH_PROGRESS" for frame in frames)
        active = [f for f in frames if f["type"] == "HIGHLIGHT" and f["active"]]
        assert active == [{"type": "HIGHLIGHT", "anchors": [{"line": 3}], "active": True}]
        complete = frames[-1]
        assert complete["state"] == "completed"
        assert complete["total_matches"] == 1
        assert complete["current_index"] == 0

        websocket.send_json({"type": "NEXT_MATCH"})
        update = _receive_until(websocket, "MATCH_UPDATE")[-1]
        assert update == {"type": "MATCH_UPDATE", "current_index": 0, "total_matches": 1}


def test_short_query_reports_error(client: TestClient) -> None:
    with client.websocket_connect("/ws/search") as websocket:
        websocket.send_json({"type": "SET_DOCUMENT", "text": DOCUMENT})
        websocket.receive_json()

        websocket.send_json({"type": "START_SEARCH", "query": "a", "mode": "fuzzy"})
        frame = websocket.receive_json()

    assert frame == {"type": "ERROR", "message": "Search pattern too short"}


def test_semantic_search_over_pages(client: TestClient) -> None:
    with client.websocket_connect("/ws/search") as websocket:
        websocket.send_json(
            {
                "type": "SET_DOCUMENT",
                "pages": ["Sunny weather today\nwith rain", "The purchase price\nwas agreed"],
            }
        )
        assert websocket.receive_json()["units"] == 4

        websocket.send_json({"type": "START_SEARCH", "query": "purchase price"})
        frames = _receive_until(websocket, "SEARCH_COMPLETE")

    active = [f for f in frames if f["type"] == "HIGHLIGHT" and f["active"]]
    assert active[0]["anchors"] == [{"page": 2, "line": 1}, {"page": 2, "line": 2}]
    assert frames[-1]["total_matches"] == 1
