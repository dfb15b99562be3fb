"""
Tests for game state and the initial deal.

Tests:
- Zone removal preserves order and guards underflow
- The 52-card invariant
- Cloning is deep
- Dealing lays out the seven columns and the stock
"""

import pytest

from ..engine_core.cards import Card, Suit
from ..engine_core.state import (
    GameState,
    GamePhase,
    Zone,
    ZoneKind,
    InvalidState,
    verify_deck,
    is_complete_foundation,
    top_of,
)
from ..engine_core.setup import deal_new_game


def pile(*refs: str) -> Zone:
    return Zone(name="pile", kind=ZoneKind.TABLEAU, cards=[Card.parse(r) for r in refs])


class TestZone:
    """Tests for zones."""

    def test_remove_from_top_keeps_order(self):
        """The removed cards come back bottom-most first."""
        zone = pile("AH", "2H", "3H")

        removed = zone.remove_from_top(2)

        assert [c.ref for c in removed] == ["2H", "3H"]
        assert [c.ref for c in zone.cards] == ["AH"]

    def test_remove_zero(self):
        zone = pile("AH")
        assert zone.remove_from_top(0) == []
        assert zone.count == 1

    def test_remove_too_many(self):
        """Removing more cards than the zone holds is a structural error."""
        zone = pile("AH", "2H")
        with pytest.raises(InvalidState):
            zone.remove_from_top(3)
        assert zone.count == 2

    def test_remove_negative(self):
        with pytest.raises(InvalidState):
            pile("AH").remove_from_top(-1)

    def test_top_of_empty(self):
        assert top_of(Zone(name="empty", kind=ZoneKind.WASTE)) is None

    def test_complete_foundation(self):
        zone = Zone(
            name="foundation_hearts",
            kind=ZoneKind.FOUNDATION,
            cards=[Card(Suit.HEARTS, rank, True) for rank in range(1, 14)],
        )
        assert is_complete_foundation(zone)
        zone.cards.pop()
        assert not is_complete_foundation(zone)


class TestGameState:
    """Tests for GameState."""

    def test_locate(self, make_state):
        state = make_state(tableau=[[], ["-3D", "KS"]])

        location = state.locate(Card.parse("KS"))

        assert location.zone is state.tableau[1]
        assert location.index == 1
        assert location.is_top

    def test_locate_missing(self, make_state):
        assert make_state().locate(Card.parse("AH")) is None

    def test_column_out_of_range(self):
        with pytest.raises(InvalidState):
            GameState().column(7)

    def test_clone_is_deep(self, dealt_state):
        """Changing a clone never touches the original."""
        clone = dealt_state.clone()
        clone.tableau[0].cards[0].flip()
        clone.stock.remove_from_top(1)

        assert dealt_state.tableau[0].cards[0].face_up is True
        assert dealt_state.stock.count == 24


class TestVerifyDeck:
    """Tests for the 52-card invariant."""

    def test_full_deck(self, make_state):
        verify_deck(make_state(tableau=[["KS"]], waste=["AH"], fill_stock=True))

    def test_missing_card(self, make_state):
        state = make_state(fill_stock=True)
        state.stock.remove_from_top(1)
        with pytest.raises(InvalidState):
            verify_deck(state)

    def test_duplicate_card(self, make_state):
        state = make_state(waste=["AH"], fill_stock=True)
        state.tableau[0].push(Card(Suit.HEARTS, 1, True))
        with pytest.raises(InvalidState):
            verify_deck(state)


class TestDeal:
    """Tests for deal_new_game."""

    def test_layout(self, dealt_state):
        """Column i holds i + 1 cards with only the top face up."""
        for i, column in enumerate(dealt_state.tableau):
            assert column.count == i + 1
            assert column.top_card.face_up
            assert not any(c.face_up for c in column.cards[:-1])

        assert dealt_state.stock.count == 24
        assert not any(c.face_up for c in dealt_state.stock.cards)
        assert dealt_state.waste.is_empty
        assert dealt_state.foundation_count() == 0

    def test_ready_to_play(self, dealt_state):
        assert dealt_state.phase == GamePhase.PLAYING
        assert dealt_state.score == 0
        verify_deck(dealt_state)

    def test_same_seed_same_deal(self):
        first = deal_new_game(random_seed=3)
        second = deal_new_game(random_seed=3)
        assert [c.ref for c in first.all_cards()] == [c.ref for c in second.all_cards()]

    def test_different_seeds_differ(self):
        first = deal_new_game(random_seed=3)
        second = deal_new_game(random_seed=4)
        assert [c.ref for c in first.all_cards()] != [c.ref for c in second.all_cards()]

    def test_high_score_carried(self):
        assert deal_new_game(random_seed=1, high_score=250).high_score == 250
