"""Round state machine and game session."""

from core.game.events import GameEvent, EventType, EventEmitter
from core.game.state import GameState
from core.game.round import Round, RoundState
from core.game.session import GameSession, SessionStats

__all__ = [
    "GameEvent",
    "EventType",
    "EventEmitter",
    "GameState",
    "Round",
    "RoundState",
    "GameSession",
    "SessionStats",
]
