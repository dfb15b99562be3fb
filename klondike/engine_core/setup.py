"""
Game Setup - Creates the initial Klondike deal.

This module handles:
- Building and shuffling the deck (seedable for determinism)
- Dealing the seven tableau columns
- Leaving the remainder in the draw pile
"""

from __future__ import annotations
import random
import time

from .cards import make_deck
from .state import GameState, GamePhase, TABLEAU_COLUMNS, verify_deck


def deal_new_game(
    random_seed: int | None = None,
    rng: random.Random | None = None,
    high_score: int = 0,
    now: float | None = None,
) -> GameState:
    """
    Shuffle a fresh deck and deal a new game.

    Args:
        random_seed: Seed for deterministic shuffling
        rng: Random source to use instead of a seeded one
        high_score: High score carried over from earlier games
        now: Creation time in epoch seconds (defaults to the clock)

    Returns:
        GameState in the PLAYING phase with score 0
    """
    rng = rng or random.Random(random_seed)

    deck = make_deck()
    rng.shuffle(deck)

    state = GameState(
        game_id=f"klondike_{random_seed if random_seed is not None else rng.randint(0, 999999)}",
        phase=GamePhase.DEALING,
        high_score=high_score,
        timestamp=time.time() if now is None else now,
    )

    # Column i gets i + 1 cards, only the last one face up
    for i in range(TABLEAU_COLUMNS):
        column = state.tableau[i]
        for _ in range(i + 1):
            column.push(deck.pop())
        column.top_card.face_up = True

    # Remaining 24 cards, face down
    state.stock.push(*deck)

    verify_deck(state)
    state.phase = GamePhase.PLAYING
    return state
