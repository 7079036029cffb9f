"""Tests for the WebSocket event stream."""

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

import api.tables as tables
from api.main import app
from api.session import InMemorySessionStore, SessionRegistry, reset_registry
from conftest import StackedRandom
from core.game import GameSession

WINNING_ROUND = ("10_of_hearts", "9_of_clubs", "10_of_spades", "7_of_clubs")


@pytest.fixture
def registry(monkeypatch):
    registry = SessionRegistry(InMemorySessionStore())
    reset_registry(registry)
    monkeypatch.setattr(
        tables, "new_session", lambda: GameSession(rng=StackedRandom(WINNING_ROUND))
    )
    yield registry
    reset_registry()


@pytest.fixture
def client(registry):
    return TestClient(app)


def _receive_until_state(websocket) -> tuple[list[dict], dict]:
    """Collect event messages up to and including the next state update."""
    events = []
    while True:
        message = websocket.receive_json()
        if message["type"] == "state_update":
            return events, message["state"]
        assert message["type"] == "event"
        events.append(message)


def test_rejects_forged_session(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws/game/not-a-token") as websocket:
            websocket.receive_json()
    assert exc_info.value.code == 1008


def test_initial_state_for_new_session(client, registry):
    """Test connecting with a valid but unknown token opens a fresh table."""
    with client.websocket_connect(f"/ws/game/{registry.new_token()}") as websocket:
        message = websocket.receive_json()

    assert message["type"] == "state_update"
    assert message["state"]["state"] == "AWAITING_DEAL"
    assert message["state"]["credits"] == 200


def test_round_streams_events(client, registry):
    token = registry.new_token()
    with client.websocket_connect(f"/ws/game/{token}") as websocket:
        websocket.receive_json()

        websocket.send_json({"type": "deal"})
        events, state = _receive_until_state(websocket)
        assert [e["event_type"] for e in events] == ["ROUND_STARTED", "CARD_DRAWN", "CARD_DRAWN"]
        assert state["state"] == "PLAYER_TURN"

        websocket.send_json({"type": "stand"})
        events, state = _receive_until_state(websocket)
        kinds = [e["event_type"] for e in events]
        assert kinds[0] == "PLAYER_STANDS"
        assert "DEALER_STANDS" in kinds
        assert kinds[-2:] == ["ROUND_SETTLED", "CREDITS_CHANGED"]
        assert state["state"] == "SETTLED"
        assert state["message"] == "You won!"
        assert state["credits"] == 215


def test_shares_state_with_http_api(client, registry):
    token = client.post("/api/game/new").json()["session_id"]
    client.post("/api/game/deal", headers={"X-Session-ID": token})

    with client.websocket_connect(f"/ws/game/{token}") as websocket:
        state = websocket.receive_json()["state"]

    assert state["state"] == "PLAYER_TURN"
    assert state["player_hand"]["value"] == 19


def test_get_state_sees_restart_over_http(client, registry):
    """Test get_state reports the current game after /new reuses the token."""
    token = client.post("/api/game/new").json()["session_id"]
    headers = {"X-Session-ID": token}

    with client.websocket_connect(f"/ws/game/{token}") as websocket:
        websocket.receive_json()
        websocket.send_json({"type": "deal"})
        _, state = _receive_until_state(websocket)
        assert state["state"] == "PLAYER_TURN"

        client.post("/api/game/new", headers=headers)

        websocket.send_json({"type": "get_state"})
        state = websocket.receive_json()["state"]

    assert state["state"] == "AWAITING_DEAL"
    assert state["player_hand"]["cards"] == []


def test_invalid_commands_report_errors(client, registry):
    with client.websocket_connect(f"/ws/game/{registry.new_token()}") as websocket:
        websocket.receive_json()

        websocket.send_text("{not json")
        assert websocket.receive_json() == {"type": "error", "message": "Malformed message"}

        websocket.send_json({"type": "split"})
        assert websocket.receive_json()["message"] == "Unknown message type: split"

        websocket.send_json({"type": "hit"})
        error = websocket.receive_json()
        assert error["type"] == "error"
        assert "hit" in error["message"]

        websocket.send_json({"type": "get_state"})
        assert websocket.receive_json()["state"]["state"] == "AWAITING_DEAL"
