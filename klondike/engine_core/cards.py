"""
Cards - Identity (suit, rank) and face orientation.

A card's suit and rank never change after creation.
The only mutable field is face_up, toggled by flip().
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Suit(Enum):
    """The four French suits."""
    HEARTS = "hearts"
    DIAMONDS = "diamonds"
    CLUBS = "clubs"
    SPADES = "spades"

    @property
    def is_red(self) -> bool:
        return self in (Suit.HEARTS, Suit.DIAMONDS)

    @property
    def color(self) -> str:
        return "red" if self.is_red else "black"

    @property
    def symbol(self) -> str:
        return SUIT_SYMBOLS[self]

    @property
    def letter(self) -> str:
        return self.value[0].upper()


SUIT_SYMBOLS = {
    Suit.HEARTS: "♥",
    Suit.DIAMONDS: "♦",
    Suit.CLUBS: "♣",
    Suit.SPADES: "♠",
}

# Foundation / serialization order
SUITS = [Suit.HEARTS, Suit.DIAMONDS, Suit.CLUBS, Suit.SPADES]

ACE = 1
KING = 13
RANKS = list(range(ACE, KING + 1))

RANK_NAMES = {1: "A", 11: "J", 12: "Q", 13: "K"}


@dataclass(eq=False)
class Card:
    """
    A single playing card.

    Equality and hashing use identity (suit, rank) only, so a face-down
    and face-up copy of the same card compare equal.
    """
    suit: Suit
    rank: int
    face_up: bool = False

    def __post_init__(self):
        if self.rank not in RANKS:
            raise ValueError(f"Rank must be between {ACE} and {KING}, got {self.rank}")

    def __eq__(self, other):
        if not isinstance(other, Card):
            return NotImplemented
        return self.suit == other.suit and self.rank == other.rank

    def __hash__(self):
        return hash((self.suit, self.rank))

    def __repr__(self):
        return f"{self.ref}{'+' if self.face_up else '-'}"

    @property
    def key(self) -> tuple[Suit, int]:
        return (self.suit, self.rank)

    @property
    def color(self) -> str:
        return self.suit.color

    @property
    def display_value(self) -> str:
        """A, 2..10, J, Q, K."""
        return RANK_NAMES.get(self.rank, str(self.rank))

    @property
    def ref(self) -> str:
        """Compact reference such as 'AH', '10S' or 'KD'."""
        return f"{self.display_value}{self.suit.letter}"

    @property
    def label(self) -> str:
        """Human-readable name used in hints, e.g. 'A of hearts'."""
        return f"{self.display_value} of {self.suit.value}"

    def flip(self) -> Card:
        """Toggle face orientation. Returns self for chaining."""
        self.face_up = not self.face_up
        return self

    def copy(self) -> Card:
        return Card(self.suit, self.rank, self.face_up)

    @classmethod
    def parse(cls, text: str, face_up: bool = True) -> Card:
        """
        Parse a compact reference ('AH', '10s', 'kd', 'QC').

        Raises ValueError on anything else.
        """
        text = (text or "").strip().upper()
        if len(text) < 2:
            raise ValueError(f"Not a card reference: {text!r}")
        rank_text, suit_letter = text[:-1], text[-1]

        suit = next((s for s in SUITS if s.letter == suit_letter), None)
        if suit is None:
            raise ValueError(f"Unknown suit in {text!r}")

        names = {name: rank for rank, name in RANK_NAMES.items()}
        if rank_text in names:
            rank = names[rank_text]
        elif rank_text.isdigit():
            rank = int(rank_text)
        else:
            raise ValueError(f"Unknown rank in {text!r}")
        return cls(suit, rank, face_up)


def alternating_colors(first: Card, second: Card) -> bool:
    """True when one card is red and the other black."""
    return first.suit.is_red != second.suit.is_red


def make_deck() -> list[Card]:
    """One ordered, face-down 52-card deck."""
    return [Card(suit, rank) for suit in SUITS for rank in RANKS]
