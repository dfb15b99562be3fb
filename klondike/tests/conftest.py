"""
Pytest fixtures for Klondike tests.

Crafted tables are written with compact card references: "KS" is a
face-up king of spades, "-KS" the same card face down.
"""

import random
from datetime import datetime
from typing import Callable

import pytest

from ..engine_core.cards import Card, Suit, make_deck
from ..engine_core.state import GameState, GamePhase
from ..engine_core.setup import deal_new_game
from ..persistence.store import MemoryStore
from ..persistence.gateway import PersistenceGateway
from ..session.game_loop import GameLoop


TODAY = datetime(2026, 10, 19, 12, 0, 0)


class FakeClock:
    """Epoch-seconds clock that only moves when told to."""

    def __init__(self, now: float = 1_760_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def card(text: str) -> Card:
    """Parse "KS" (face up) or "-KS" (face down)."""
    if text.startswith("-"):
        return Card.parse(text[1:], face_up=False)
    return Card.parse(text)


def build_state(
    tableau: list[list[str]] | None = None,
    waste: list[str] | None = None,
    stock: list[str] | None = None,
    foundations: dict[Suit, int] | None = None,
    fill_stock: bool = False,
    score: int = 0,
) -> GameState:
    """
    A PLAYING state with exactly the given cards.

    foundations maps a suit to its top rank. With fill_stock, every
    card not placed elsewhere goes face down into the stock so the
    table holds one full deck.
    """
    state = GameState(game_id="test_game", phase=GamePhase.PLAYING, score=score)
    for column, refs in zip(state.tableau, tableau or []):
        column.push(*[card(r) for r in refs])
    state.waste.push(*[card(r) for r in waste or []])
    state.stock.push(*[card(r) for r in stock or []])
    for c in state.stock.cards:
        c.face_up = False
    for suit, top_rank in (foundations or {}).items():
        state.foundation(suit).push(*[Card(suit, rank, True) for rank in range(1, top_rank + 1)])

    if fill_stock:
        placed = set(state.all_cards())
        state.stock.push(*[c for c in make_deck() if c not in placed])
    return state


@pytest.fixture
def make_state() -> Callable[..., GameState]:
    """Builder for crafted tables."""
    return build_state


@pytest.fixture
def dealt_state() -> GameState:
    """A seeded fresh deal."""
    return deal_new_game(random_seed=42, now=1_760_000_000.0)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def gateway(store: MemoryStore, clock: FakeClock) -> PersistenceGateway:
    """Gateway over an in-memory store and a fake clock."""
    return PersistenceGateway(store=store, clock=clock)


@pytest.fixture
def loop(gateway: PersistenceGateway, clock: FakeClock) -> GameLoop:
    """A started game loop on a seeded deal, fixed at noon on TODAY."""
    game_loop = GameLoop(
        gateway=gateway,
        rng=random.Random(7),
        clock=clock,
        calendar=lambda: TODAY,
    )
    game_loop.start(random_seed=42)
    return game_loop
