"""Game API endpoints."""

import logging
from typing import Annotated, Callable

from fastapi import APIRouter, Header, HTTPException

from api.schemas import ActionRequest, GameStateResponse, NewSessionResponse
from api.session import SessionRegistry, get_registry
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

SessionHeader = Annotated[str, Header(alias="X-Session-ID")]


def _check_token(registry: SessionRegistry, session_id: str) -> None:
    if not registry.is_valid(session_id):
        raise HTTPException(status_code=401, detail="Invalid or expired session")


async def _perform(
    session_id: str,
    operation: Callable[[GameSession], object],
) -> GameStateResponse:
    """Run one action on a session while holding its lock, then store it."""
    registry = await get_registry()
    _check_token(registry, session_id)

    async with registry.lock(session_id):
        try:
            session = await load_table(registry, session_id)
        except UnknownSessionError:
            raise HTTPException(status_code=404, detail="Unknown session") from None

        try:
            events = run_recorded(session, operation)
        except InvalidTransitionError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        await finish_table(registry, session_id, session)
        return state_response(session_id, session, events)


@router.post("/new")
async def new_game(
    session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> NewSessionResponse:
    """Create a new game session, or restart the game for an existing one."""
    registry = await get_registry()
    if session_id is None or not registry.is_valid(session_id):
        token, _ = await create_table(registry)
    else:
        async with registry.lock(session_id):
            token, _ = await create_table(registry, session_id)
    return NewSessionResponse(session_id=token)


@router.get("/state")
async def get_state(session_id: SessionHeader) -> GameStateResponse:
    """Get current game state."""
    registry = await get_registry()
    _check_token(registry, session_id)
    try:
        session = await load_table(registry, session_id)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Unknown session") from None
    return state_response(session_id, session)


@router.post("/deal")
async def deal(session_id: SessionHeader) -> GameStateResponse:
    """Deal the player's opening cards."""
    return await _perform(session_id, GameSession.start_round)


@router.post("/action")
async def player_action(request: ActionRequest, session_id: SessionHeader) -> GameStateResponse:
    """Execute a player action."""
    actions = {
        "hit": GameSession.hit,
        "stand": GameSession.stand,
    }
    return await _perform(session_id, actions[request.action])


@router.post("/reset")
async def reset_round(session_id: SessionHeader) -> GameStateResponse:
    """Clear the table for the next round."""
    return await _perform(session_id, GameSession.reset_for_new_round)


@router.post("/play-again")
async def play_again(session_id: SessionHeader) -> GameStateResponse:
    """Clear the table and deal the next round."""
    return await _perform(session_id, GameSession.play_again)


@router.post("/end")
async def end_game(session_id: SessionHeader) -> GameStateResponse:
    """Leave the table."""
    return await _perform(session_id, GameSession.end_session)
