"""
Session Module - Manages live games.

A session represents one player's game:
- Created when a client starts playing
- Holds the game loop (engine, scoring, missions)
- Saves through the profile's persistence gateway
- Saved and dropped from memory when it ends
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult, TickResult, Notification, NotificationKind

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "TickResult",
    "Notification",
    "NotificationKind",
]
