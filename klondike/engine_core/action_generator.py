"""
Action Generator - Generates candidate moves from a game state.

The action generator is used by:
1. Stuck detection after every move (has_any_legal_move)
2. Hint text for the player (compute_hint)
3. UI to show available actions

Design: Generates Action objects, not just action types.
This ensures all generated actions are fully specified and
can be fed straight back into the reducer.
"""

from __future__ import annotations
from dataclasses import dataclass
import random

from .cards import Card, KING
from .state import GameState, GamePhase, DECK_SIZE
from .action import Action
from .reducer import foundation_accepts, column_accepts


NO_MOVES_HINT = "No moves available. Consider starting a new game."
DRAW_HINT = "Draw a card from the deck"
RESET_HINT = "Reset the deck"


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    Stateless - all state is in GameState.
    """

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate every move that would currently be accepted.

        Recycling the waste is left out: it only counts as a way
        forward once nothing else is possible.
        """
        if state.phase != GamePhase.PLAYING:
            return []

        actions = []

        # Waste top
        waste_top = state.waste.top_card
        if waste_top is not None:
            if foundation_accepts(state.foundation(waste_top.suit), waste_top):
                actions.append(Action.to_foundation(waste_top, waste_top.suit))
            for column in self._tableau_targets(state, waste_top):
                actions.append(Action.to_tableau(waste_top, column))

        # Tableau
        for i, column in enumerate(state.tableau):
            top = column.top_card
            if top is None:
                continue
            if not top.face_up:
                actions.append(Action.reveal(i))
                continue

            if foundation_accepts(state.foundation(top.suit), top):
                actions.append(Action.to_foundation(top, top.suit))

            for card in self._run_bases(column.cards):
                for target in self._tableau_targets(state, card, source=i):
                    actions.append(Action.to_tableau(card, target))

        # Draw
        if not state.stock.is_empty:
            actions.append(Action.draw())

        return actions

    def hints(self, state: GameState) -> list[str]:
        """
        Human-readable card moves for the waste top and face-up column tops.
        """
        hints = []

        waste_top = state.waste.top_card
        if waste_top is not None:
            if foundation_accepts(state.foundation(waste_top.suit), waste_top):
                hints.append(f"Move {waste_top.label} to foundation")
            if self._tableau_targets(state, waste_top):
                hints.append(f"Move {waste_top.label} to tableau")

        for i, column in enumerate(state.tableau):
            top = column.top_card
            if top is None or not top.face_up:
                continue
            if foundation_accepts(state.foundation(top.suit), top):
                hints.append(f"Move {top.label} from tableau {i + 1} to foundation")
            if self._tableau_targets(state, top, source=i, skip_bottom_king=True):
                hints.append(f"Move {top.label} from tableau {i + 1} to another tableau pile")

        return hints

    def _run_bases(self, cards: list[Card]) -> list[Card]:
        """Every face-up card in a column, from the top down."""
        bases = []
        for card in reversed(cards):
            if not card.face_up:
                break
            bases.append(card)
        return bases

    def _tableau_targets(
        self,
        state: GameState,
        card: Card,
        source: int | None = None,
        skip_bottom_king: bool = False,
    ) -> list[int]:
        """
        Columns that would accept card, excluding its own.

        With skip_bottom_king, a king already at the bottom of its column
        gets no empty targets; hints leave out that move.
        """
        targets = []
        for i, column in enumerate(state.tableau):
            if i == source:
                continue
            if skip_bottom_king and column.is_empty and self._is_bottom_king(state, card, source):
                continue
            if column_accepts(column, card):
                targets.append(i)
        return targets

    def _is_bottom_king(self, state: GameState, card: Card, source: int | None) -> bool:
        if source is None or card.rank != KING:
            return False
        cards = state.tableau[source].cards
        return bool(cards) and cards[0] == card


def legal_actions(state: GameState) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator()
    return generator.generate(state)


def has_any_legal_move(state: GameState) -> bool:
    """True when any card move, reveal or draw is available."""
    return len(legal_actions(state)) > 0


def compute_hint(state: GameState, rng: random.Random | None = None) -> str:
    """
    Pick one available move at random and describe it.

    With no card move available, suggest drawing, then recycling,
    then a new game.
    """
    rng = rng or random.Random()
    hints = ActionGenerator().hints(state)
    if hints:
        return rng.choice(hints)
    if not state.stock.is_empty:
        return DRAW_HINT
    if not state.waste.is_empty:
        return RESET_HINT
    return NO_MOVES_HINT


def foundation_progress(state: GameState) -> int:
    """Percentage of the deck already on the foundations."""
    return round(state.foundation_count() / DECK_SIZE * 100)
