"""
Action System - Move requests, payloads, and results.

Actions represent player moves: draw, move to foundation,
move to tableau, reveal a face-down column top.

All state changes flow through actions. A result carries the progress
events and point awards the move produced, so observers (scoring,
missions, presentation) never have to diff states.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card, Suit


class ActionType(Enum):
    """Types of actions in the system."""
    DRAW = "draw"
    MOVE_TO_FOUNDATION = "move_to_foundation"
    MOVE_TO_TABLEAU = "move_to_tableau"
    REVEAL = "reveal"


class ProgressEvent(Enum):
    """Gameplay events observed by the progression subsystem."""
    FOUNDATION_MOVE = "foundation_move"
    REVEAL_CARD = "reveal_card"
    KING_MOVE = "king_move"
    TABLEAU_MOVE = "tableau_move"
    WIN_GAME = "win_game"


class ErrorCode:
    """Structured error codes for failed results."""
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    INVALID_STATE = "INVALID_STATE"
    NO_HANDLER = "NO_HANDLER"


# Points awarded by the move engine
FOUNDATION_POINTS = 10
REVEAL_POINTS = 5
KING_TO_EMPTY_POINTS = 5
TABLEAU_POINTS = 2
WIN_BONUS = 100


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields.
    Validation happens in the reducer.
    """
    card: Card | None = None
    target_suit: Suit | None = None
    column: int | None = None
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete move request to be applied to the game state.

    Actions are validated before application and applied
    atomically by the reducer.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None

    @classmethod
    def draw(cls) -> Action:
        """Factory for draw/recycle."""
        return cls(action_type=ActionType.DRAW)

    @classmethod
    def to_foundation(cls, card: Card, suit: Suit | None = None) -> Action:
        """Factory for a move onto a foundation."""
        return cls(
            action_type=ActionType.MOVE_TO_FOUNDATION,
            payload=ActionPayload(card=card, target_suit=suit),
        )

    @classmethod
    def to_tableau(cls, card: Card, column: int) -> Action:
        """Factory for a (run) move onto a tableau column."""
        return cls(
            action_type=ActionType.MOVE_TO_TABLEAU,
            payload=ActionPayload(card=card, column=column),
        )

    @classmethod
    def reveal(cls, column: int) -> Action:
        """Factory for flipping a face-down column top."""
        return cls(
            action_type=ActionType.REVEAL,
            payload=ActionPayload(column=column),
        )


@dataclass
class PointAward:
    """Points granted by a move, with the reason shown to the player."""
    amount: int
    reason: str


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action succeeded
    - New state (if succeeded)
    - Error (if failed)
    - Events and point awards for observers
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    events: list[ProgressEvent] = field(default_factory=list)
    awards: list[PointAward] = field(default_factory=list)

    # Human-readable changes, for UI/logging
    state_changes: list[str] = field(default_factory=list)

    @property
    def points(self) -> int:
        return sum(a.amount for a in self.awards)

    @property
    def won(self) -> bool:
        return ProgressEvent.WIN_GAME in self.events

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        events: list[ProgressEvent] | None = None,
        awards: list[PointAward] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            events=events or [],
            awards=awards or [],
        )
