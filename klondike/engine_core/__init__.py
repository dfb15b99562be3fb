"""
Engine Core - Deterministic Klondike state management and move application.

The engine is the runtime that:
1. Deals a GameState
2. Generates legal moves and hints
3. Applies moves via the reducer
4. Reports progress events and point awards for each move
"""

from .cards import Card, Suit, SUITS, make_deck
from .state import GameState, GamePhase, Zone, ZoneKind, InvalidState, verify_deck
from .action import Action, ActionType, ActionPayload, ActionResult, ErrorCode, ProgressEvent, PointAward
from .reducer import Reducer, apply_action, find_run, check_win
from .action_generator import ActionGenerator, legal_actions, has_any_legal_move, compute_hint, foundation_progress
from .setup import deal_new_game

__all__ = [
    "Card",
    "Suit",
    "SUITS",
    "make_deck",
    "GameState",
    "GamePhase",
    "Zone",
    "ZoneKind",
    "InvalidState",
    "verify_deck",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "ErrorCode",
    "ProgressEvent",
    "PointAward",
    "Reducer",
    "apply_action",
    "find_run",
    "check_win",
    "ActionGenerator",
    "legal_actions",
    "has_any_legal_move",
    "compute_hint",
    "foundation_progress",
    "deal_new_game",
]
