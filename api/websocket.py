"""WebSocket event stream for a game session."""

import json
import logging
from typing import Any, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from api.session import get_registry
from api.tables import (
    UnknownSessionError,
    create_table,
    finish_table,
    load_table,
    run_recorded,
    state_response,
)
from core.errors import InvalidTransitionError
from core.game import GameSession

logger = logging.getLogger(__name__)

router = APIRouter()

COMMANDS: dict[str, Callable[[GameSession], object]] = {
    "deal": GameSession.start_round,
    "hit": GameSession.hit,
    "stand": GameSession.stand,
    "reset": GameSession.reset_for_new_round,
    "play_again": GameSession.play_again,
    "end": GameSession.end_session,
}


def _state_message(session_id: str, session: GameSession) -> dict[str, Any]:
    return {
        "type": "state_update",
        "state": state_response(session_id, session).model_dump(exclude={"events"}),
    }


@router.websocket("/game/{session_id}")
async def game_websocket(websocket: WebSocket, session_id: str) -> None:
    """
    WebSocket endpoint for real-time game updates.

    Messages from client:
    - {"type": "deal" | "hit" | "stand" | "reset" | "play_again" | "end"}
    - {"type": "get_state"}

    Messages to client:
    - {"type": "event", "event_type": "...", "data": {...}, "timestamp": "..."}
    - {"type": "state_update", "state": {...}}
    - {"type": "error", "message": "..."}
    """
    registry = await get_registry()
    if not registry.is_valid(session_id):
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    async with registry.lock(session_id):
        try:
            session = await load_table(registry, session_id)
        except UnknownSessionError:
            _, session = await create_table(registry, session_id)
    await websocket.send_json(_state_message(session_id, session))

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                command = json.loads(raw).get("type")
            except (ValueError, AttributeError):
                await websocket.send_json({"type": "error", "message": "Malformed message"})
                continue

            if command == "get_state":
                session = await load_table(registry, session_id)
                await websocket.send_json(_state_message(session_id, session))
                continue

            operation = COMMANDS.get(command)
            if operation is None:
                await websocket.send_json(
                    {"type": "error", "message": f"Unknown message type: {command}"}
                )
                continue

            async with registry.lock(session_id):
                session = await load_table(registry, session_id)
                try:
                    events = run_recorded(session, operation)
                except InvalidTransitionError as exc:
                    await websocket.send_json({"type": "error", "message": str(exc)})
                    continue
                await finish_table(registry, session_id, session)

            for event in events:
                await websocket.send_json({"type": "event", **event.to_dict()})
            await websocket.send_json(_state_message(session_id, session))

    except WebSocketDisconnect:
        logger.debug("WebSocket closed for %s…", session_id[:8])
    except UnknownSessionError:
        await websocket.send_json({"type": "error", "message": "Unknown session"})
        await websocket.close()
