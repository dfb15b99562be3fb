"""
Reducer - Applies moves to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying
- Atomic: works on a clone, the input state is never modified
- Returns ActionResult with events and point awards for observers
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .cards import Card, KING, ACE, alternating_colors
from .state import GameState, GamePhase, Zone, ZoneKind, InvalidState, is_complete_foundation
from .action import (
    Action,
    ActionType,
    ActionResult,
    ErrorCode,
    PointAward,
    ProgressEvent,
    FOUNDATION_POINTS,
    REVEAL_POINTS,
    KING_TO_EMPTY_POINTS,
    TABLEAU_POINTS,
    WIN_BONUS,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Placement rules
# =============================================================================

def foundation_accepts(foundation: Zone, card: Card) -> bool:
    """Ace on empty, otherwise the next rank of the same suit."""
    top = foundation.top_card
    if top is None:
        return card.rank == ACE
    return card.suit == top.suit and card.rank == top.rank + 1


def column_accepts(column: Zone, card: Card) -> bool:
    """King on empty, otherwise alternating color and one rank lower."""
    top = column.top_card
    if top is None:
        return card.rank == KING
    if not top.face_up:
        return False
    return alternating_colors(card, top) and card.rank == top.rank - 1


def check_win(state: GameState) -> bool:
    """True iff all four foundations hold ace through king."""
    return all(is_complete_foundation(f) for f in state.foundations.values())


def find_run(state: GameState, card: Card) -> list[Card]:
    """
    The cards that move together when card is picked up.

    Tableau: the card and every card above it.
    Waste: the card alone, if it is the waste top.
    Anywhere else, or not found: empty.
    """
    location = state.locate(card)
    if location is None:
        return []
    if location.zone.kind == ZoneKind.TABLEAU:
        return location.zone.cards[location.index:]
    if location.zone.kind == ZoneKind.WASTE and location.is_top:
        return [location.zone.cards[location.index]]
    return []


# =============================================================================
# Reducer
# =============================================================================

@dataclass
class Reducer:
    """
    Reducer applies moves to game state.

    Stateless - all state is in GameState.
    """

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code=ErrorCode.ILLEGAL_MOVE)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.NO_HANDLER,
            )

        try:
            result = handler(state, action)
        except InvalidState as e:
            logger.error("Invalid state while applying %s: %s", action.action_type.value, e)
            return ActionResult.failure(str(e), error_code=ErrorCode.INVALID_STATE)

        if result.success:
            logger.debug(
                "Applied %s: %s (+%d)",
                action.action_type.value,
                "; ".join(result.state_changes),
                result.points,
            )
        return result

    def _validate_action(self, state: GameState, action: Action) -> str | None:
        """
        Validate that an action can be considered in the current phase.

        Returns error message if invalid, None if valid.
        """
        if state.phase == GamePhase.DEALING:
            return "Game not dealt yet"
        if state.phase == GamePhase.WON:
            return "Game is over - no moves allowed"

        payload = action.payload
        if action.action_type in {ActionType.MOVE_TO_FOUNDATION, ActionType.MOVE_TO_TABLEAU}:
            if payload.card is None:
                return "No card given"
        if action.action_type in {ActionType.MOVE_TO_TABLEAU, ActionType.REVEAL}:
            if payload.column is None or not 0 <= payload.column < len(state.tableau):
                return f"No tableau column {payload.column}"

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.DRAW: self._handle_draw,
            ActionType.MOVE_TO_FOUNDATION: self._handle_to_foundation,
            ActionType.MOVE_TO_TABLEAU: self._handle_to_tableau,
            ActionType.REVEAL: self._handle_reveal,
        }
        return handlers.get(action_type)

    def _handle_draw(self, state: GameState, action: Action) -> ActionResult:
        """Draw the stock top onto the waste, or recycle the waste."""
        new_state = state.clone()
        stock, waste = new_state.stock, new_state.waste

        if not stock.is_empty:
            card = stock.remove_from_top(1)[0]
            card.face_up = True
            waste.push(card)
            return ActionResult.success_with_state(new_state, changes=[f"Drew {card.label}"])

        if not waste.is_empty:
            recycled = waste.remove_from_top(waste.count)
            for card in reversed(recycled):
                card.face_up = False
                stock.push(card)
            return ActionResult.success_with_state(
                new_state,
                changes=[f"Recycled {len(recycled)} card(s) to the deck"],
            )

        return ActionResult.success_with_state(new_state, changes=["Nothing to draw"])

    def _handle_to_foundation(self, state: GameState, action: Action) -> ActionResult:
        """Move a single exposed card onto its suit's foundation."""
        payload = action.payload
        new_state = state.clone()

        location = new_state.locate(payload.card)
        if location is None:
            return ActionResult.failure(f"Card {payload.card.ref} not found", ErrorCode.ILLEGAL_MOVE)

        source = location.zone
        card = source.cards[location.index]
        if source.kind not in {ZoneKind.WASTE, ZoneKind.TABLEAU}:
            return ActionResult.failure(f"Cannot move a card from the {source.kind.value}", ErrorCode.ILLEGAL_MOVE)
        if not location.is_top or not card.face_up:
            return ActionResult.failure(f"{card.label} is not an exposed top card", ErrorCode.ILLEGAL_MOVE)
        if payload.target_suit is not None and payload.target_suit != card.suit:
            return ActionResult.failure(
                f"{card.label} does not belong on the {payload.target_suit.value} foundation",
                ErrorCode.ILLEGAL_MOVE,
            )

        foundation = new_state.foundation(card.suit)
        if not foundation_accepts(foundation, card):
            return ActionResult.failure(
                f"{card.label} cannot go on the {card.suit.value} foundation",
                ErrorCode.ILLEGAL_MOVE,
            )

        events: list[ProgressEvent] = []
        awards: list[PointAward] = []
        changes: list[str] = []

        source.remove_from_top(1)
        if source.kind == ZoneKind.TABLEAU:
            self._reveal_exposed(source, events, awards, changes)
        foundation.push(card)

        awards.append(PointAward(FOUNDATION_POINTS, "Move to foundation"))
        events.append(ProgressEvent.FOUNDATION_MOVE)
        changes.append(f"Moved {card.label} to foundation")

        self._check_win(new_state, events, awards, changes)

        return ActionResult.success_with_state(new_state, changes=changes, events=events, awards=awards)

    def _handle_to_tableau(self, state: GameState, action: Action) -> ActionResult:
        """Move a face-up run (or the waste top) onto a tableau column."""
        payload = action.payload
        new_state = state.clone()

        location = new_state.locate(payload.card)
        if location is None:
            return ActionResult.failure(f"Card {payload.card.ref} not found", ErrorCode.ILLEGAL_MOVE)

        source = location.zone
        card = source.cards[location.index]
        target = new_state.column(payload.column)

        if source.kind == ZoneKind.WASTE:
            if not location.is_top:
                return ActionResult.failure(f"{card.label} is not the waste top", ErrorCode.ILLEGAL_MOVE)
        elif source.kind == ZoneKind.TABLEAU:
            if source is target:
                return ActionResult.failure("Card is already in that column", ErrorCode.ILLEGAL_MOVE)
            if not all(c.face_up for c in source.cards[location.index:]):
                return ActionResult.failure(f"{card.label} is not part of a face-up run", ErrorCode.ILLEGAL_MOVE)
        else:
            return ActionResult.failure(f"Cannot move a card from the {source.kind.value}", ErrorCode.ILLEGAL_MOVE)

        was_empty = target.is_empty
        if not column_accepts(target, card):
            return ActionResult.failure(
                f"{card.label} cannot go on column {payload.column + 1}",
                ErrorCode.ILLEGAL_MOVE,
            )

        events: list[ProgressEvent] = []
        awards: list[PointAward] = []
        changes: list[str] = []

        run = source.remove_from_top(location.depth)
        if source.kind == ZoneKind.TABLEAU:
            self._reveal_exposed(source, events, awards, changes)
        target.push(*run)

        if was_empty:
            awards.append(PointAward(KING_TO_EMPTY_POINTS, "King to empty space"))
            events.append(ProgressEvent.KING_MOVE)
        else:
            awards.append(PointAward(TABLEAU_POINTS, "Tableau move"))
            events.append(ProgressEvent.TABLEAU_MOVE)
        changes.append(f"Moved {len(run)} card(s) from {card.label} to column {payload.column + 1}")

        return ActionResult.success_with_state(new_state, changes=changes, events=events, awards=awards)

    def _handle_reveal(self, state: GameState, action: Action) -> ActionResult:
        """Flip a face-down column top."""
        new_state = state.clone()
        column = new_state.column(action.payload.column)
        top = column.top_card
        if top is None or top.face_up:
            return ActionResult.failure("No face-down card to reveal", ErrorCode.ILLEGAL_MOVE)

        events: list[ProgressEvent] = []
        awards: list[PointAward] = []
        changes: list[str] = []
        self._reveal_exposed(column, events, awards, changes)

        return ActionResult.success_with_state(new_state, changes=changes, events=events, awards=awards)

    def _reveal_exposed(
        self,
        column: Zone,
        events: list[ProgressEvent],
        awards: list[PointAward],
        changes: list[str],
    ):
        """Auto-flip a column's top when the move just exposed a hidden card."""
        top = column.top_card
        if top is None or top.face_up:
            return
        top.flip()
        awards.append(PointAward(REVEAL_POINTS, "Reveal card"))
        events.append(ProgressEvent.REVEAL_CARD)
        changes.append(f"Revealed {top.label}")

    def _check_win(
        self,
        state: GameState,
        events: list[ProgressEvent],
        awards: list[PointAward],
        changes: list[str],
    ):
        """Grant the win bonus on the first transition to a won table."""
        if state.is_won or not check_win(state):
            return
        state.phase = GamePhase.WON
        awards.append(PointAward(WIN_BONUS, "Game won!"))
        events.append(ProgressEvent.WIN_GAME)
        changes.append("All foundations complete")


def apply_action(state: GameState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
