"""
Game State - Zones and the complete Klondike table.

Design principles:
- Explicit: one GameState object holds every zone plus the score
- Clone-then-mutate: the reducer works on a deep copy, so a failed move
  never touches the caller's state
- Serializable: the persistence gateway can snapshot and restore it
- Checked: the 52-card invariant can be verified at any time
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum

from .cards import Card, Suit, SUITS, KING, make_deck

TABLEAU_COLUMNS = 7
DECK_SIZE = 52


class InvalidState(Exception):
    """
    Raised on a structural impossibility (zone underflow, broken deck).

    Indicates a bug upstream; never expected in normal play.
    """


class GamePhase(Enum):
    """High-level game phases."""
    DEALING = "dealing"
    PLAYING = "playing"
    WON = "won"


class ZoneKind(Enum):
    """The five kinds of zone on a Klondike table."""
    STOCK = "stock"
    WASTE = "waste"
    FOUNDATION = "foundation"
    TABLEAU = "tableau"


@dataclass
class Zone:
    """
    An ordered pile of cards. The top is the last element.
    """
    name: str
    kind: ZoneKind
    cards: list[Card] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return len(self.cards) == 0

    @property
    def top_card(self) -> Card | None:
        """Get the top card of the zone."""
        return self.cards[-1] if self.cards else None

    def push(self, *cards: Card):
        self.cards.extend(cards)

    def remove_from_top(self, n: int) -> list[Card]:
        """Remove and return the top n cards, bottom-most first."""
        if n < 0 or n > len(self.cards):
            raise InvalidState(
                f"Cannot remove {n} card(s) from {self.name} holding {len(self.cards)}"
            )
        if n == 0:
            return []
        removed = self.cards[-n:]
        del self.cards[-n:]
        return removed

    def index_of(self, card: Card) -> int:
        """Position of card in this zone, or -1."""
        for i, c in enumerate(self.cards):
            if c == card:
                return i
        return -1


def flip(card: Card) -> Card:
    return card.flip()


def top_of(zone: Zone) -> Card | None:
    return zone.top_card


def remove_from_top(zone: Zone, n: int) -> list[Card]:
    return zone.remove_from_top(n)


@dataclass
class CardLocation:
    """Where a card currently sits."""
    zone: Zone
    index: int

    @property
    def is_top(self) -> bool:
        return self.index == self.zone.count - 1

    @property
    def depth(self) -> int:
        """Number of cards from this one to the top, inclusive."""
        return self.zone.count - self.index


def _foundations() -> dict[Suit, Zone]:
    return {
        suit: Zone(name=f"foundation_{suit.value}", kind=ZoneKind.FOUNDATION)
        for suit in SUITS
    }


def _tableau() -> list[Zone]:
    return [
        Zone(name=f"tableau_{i}", kind=ZoneKind.TABLEAU)
        for i in range(TABLEAU_COLUMNS)
    ]


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All moves go through the reducer.
    """
    game_id: str = ""
    phase: GamePhase = GamePhase.DEALING

    # Zones
    stock: Zone = field(default_factory=lambda: Zone(name="stock", kind=ZoneKind.STOCK))
    waste: Zone = field(default_factory=lambda: Zone(name="waste", kind=ZoneKind.WASTE))
    foundations: dict[Suit, Zone] = field(default_factory=_foundations)
    tableau: list[Zone] = field(default_factory=_tableau)

    # Score
    score: int = 0
    high_score: int = 0

    # Epoch seconds of creation or last save
    timestamp: float = 0.0

    @property
    def is_won(self) -> bool:
        return self.phase == GamePhase.WON

    def foundation(self, suit: Suit) -> Zone:
        return self.foundations[suit]

    def column(self, index: int) -> Zone:
        if index < 0 or index >= len(self.tableau):
            raise InvalidState(f"No tableau column {index}")
        return self.tableau[index]

    def zones(self) -> list[Zone]:
        """All zones, stock first."""
        return [self.stock, self.waste, *self.foundations.values(), *self.tableau]

    def all_cards(self) -> list[Card]:
        return [card for zone in self.zones() for card in zone.cards]

    def locate(self, card: Card) -> CardLocation | None:
        """Find the zone holding a card (matched by suit and rank)."""
        for zone in self.zones():
            idx = zone.index_of(card)
            if idx != -1:
                return CardLocation(zone=zone, index=idx)
        return None

    def column_index(self, zone: Zone) -> int:
        for i, column in enumerate(self.tableau):
            if column is zone:
                return i
        return -1

    def foundation_count(self) -> int:
        return sum(f.count for f in self.foundations.values())

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)


def verify_deck(state: GameState):
    """
    Check that the zones hold exactly one standard deck.

    Raises InvalidState on duplicates or omissions.
    """
    cards = state.all_cards()
    seen = set()
    duplicates = []
    for card in cards:
        if card.key in seen:
            duplicates.append(card.ref)
        seen.add(card.key)
    if duplicates:
        raise InvalidState(f"Duplicate cards: {', '.join(duplicates)}")

    missing = [c.ref for c in make_deck() if c.key not in seen]
    if missing:
        raise InvalidState(f"Missing cards: {', '.join(missing)}")

    if len(cards) != DECK_SIZE:
        raise InvalidState(f"Expected {DECK_SIZE} cards, found {len(cards)}")


def is_complete_foundation(zone: Zone) -> bool:
    """True when the pile holds ace through king of one suit."""
    if zone.count != KING:
        return False
    suit = zone.cards[0].suit
    return all(c.suit == suit and c.rank == i + 1 for i, c in enumerate(zone.cards))
