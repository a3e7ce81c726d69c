"""
Session Module - Manages game sessions.

A session represents one play-through of a scenario:
- Created from a validated Scenario and an optional seed
- Owns the state, decks, nodes and engines of that game
- Drives the turn cycle through its TurnManager
- Dropped when the caller ends it

Sessions are in-memory only. There is no persistence.
"""

from .manager import SessionManager, GameSession
from .game_loop import TurnManager
from .schemas import StateSnapshot

__all__ = [
    "SessionManager",
    "GameSession",
    "TurnManager",
    "StateSnapshot",
]
