"""
Tests for the action generator.

Tests:
- Generated moves are accepted by the reducer
- Stuck detection
- Hint text and the fallback hints
- Foundation progress
"""

import random

import pytest

from ..engine_core.cards import Suit
from ..engine_core.action import ActionType
from ..engine_core.reducer import apply_action
from ..engine_core.action_generator import (
    ActionGenerator,
    legal_actions,
    has_any_legal_move,
    compute_hint,
    foundation_progress,
    NO_MOVES_HINT,
    DRAW_HINT,
    RESET_HINT,
)


def describe(actions) -> set:
    return {
        (a.action_type, a.payload.card.ref if a.payload.card else None, a.payload.column)
        for a in actions
    }


class TestLegalActions:
    """Tests for legal action generation."""

    def test_every_generated_action_is_accepted(self, dealt_state):
        """Each generated move succeeds when applied."""
        for action in legal_actions(dealt_state):
            assert apply_action(dealt_state, action).success

    def test_run_moves_offered(self, make_state):
        state = make_state(tableau=[["-2C", "9H", "8S"], ["10C"]])

        actions = describe(legal_actions(state))

        assert (ActionType.MOVE_TO_TABLEAU, "9H", 1) in actions

    def test_reveal_offered(self, make_state):
        state = make_state(tableau=[["-5H"]])
        assert (ActionType.REVEAL, None, 0) in describe(legal_actions(state))

    def test_bottom_king_to_empty_column_offered(self, make_state):
        """A king at the bottom of its column may still move to an empty one."""
        state = make_state(tableau=[["KS"], [], ["-2H", "5D"]])

        actions = describe(legal_actions(state))

        assert (ActionType.MOVE_TO_TABLEAU, "KS", 1) in actions
        for action in legal_actions(state):
            assert apply_action(state, action).success

    def test_no_moves_once_won(self, make_state):
        state = make_state(waste=["KS"], foundations={
            Suit.HEARTS: 13, Suit.DIAMONDS: 13, Suit.CLUBS: 13, Suit.SPADES: 12,
        })
        won = apply_action(state, ActionGenerator().generate(state)[0]).new_state
        assert legal_actions(won) == []


class TestStuckDetection:
    """Tests for has_any_legal_move."""

    def test_fresh_deal_has_moves(self, dealt_state):
        assert has_any_legal_move(dealt_state)

    def test_stock_counts_as_a_move(self, make_state):
        state = make_state(tableau=[["KS"]], stock=["5H"])
        assert has_any_legal_move(state)

    def test_recycling_does_not_count(self, make_state):
        """An unplayable waste with an empty stock is stuck."""
        state = make_state(tableau=[["5S"]], waste=["5H"])
        assert not has_any_legal_move(state)

    def test_bottom_king_counts(self, make_state):
        """Moving a bottom king to an empty column keeps the game going."""
        state = make_state(tableau=[["KS"], [], ["-2H", "5D"]])
        assert has_any_legal_move(state)

    def test_face_down_top_counts(self, make_state):
        state = make_state(tableau=[["-5H"]])
        assert has_any_legal_move(state)

    def test_foundation_move_counts(self, make_state):
        state = make_state(tableau=[["KS"], ["AH"]])
        assert has_any_legal_move(state)


class TestHints:
    """Tests for hint text."""

    def test_waste_to_foundation(self, make_state):
        state = make_state(waste=["AH"])
        assert "Move A of hearts to foundation" in ActionGenerator().hints(state)

    def test_waste_to_tableau(self, make_state):
        state = make_state(tableau=[["8S"]], waste=["7H"])
        assert ActionGenerator().hints(state) == ["Move 7 of hearts to tableau"]

    def test_column_to_foundation(self, make_state):
        state = make_state(tableau=[[], [], ["AS"]])
        assert ActionGenerator().hints(state) == ["Move A of spades from tableau 3 to foundation"]

    def test_bottom_king_not_hinted(self, make_state):
        """Hints leave out shuffling a bottom king between empty columns."""
        state = make_state(tableau=[["KS"], [], ["-2H", "5D"]])
        assert ActionGenerator().hints(state) == []

    def test_column_to_column(self, make_state):
        state = make_state(tableau=[["8S"], ["7H"]])
        assert ActionGenerator().hints(state) == [
            "Move 7 of hearts from tableau 2 to another tableau pile",
        ]

    def test_hint_is_one_of_the_moves(self, make_state):
        state = make_state(tableau=[["8S"], ["7H"], ["AD"]])
        hints = ActionGenerator().hints(state)

        assert compute_hint(state, random.Random(1)) in hints

    def test_seeded_hint_is_repeatable(self, dealt_state):
        assert compute_hint(dealt_state, random.Random(5)) == compute_hint(dealt_state, random.Random(5))

    @pytest.mark.parametrize("stock,waste,expected", [
        (["5H"], [], DRAW_HINT),
        ([], ["5H"], RESET_HINT),
        ([], [], NO_MOVES_HINT),
    ])
    def test_fallback_hints(self, make_state, stock, waste, expected):
        """Without a card move: draw, then recycle, then start over."""
        state = make_state(tableau=[["KS"]], stock=stock, waste=waste)
        assert compute_hint(state) == expected


class TestProgress:
    """Tests for foundation_progress."""

    def test_empty(self, dealt_state):
        assert foundation_progress(dealt_state) == 0

    def test_one_suit(self, make_state):
        assert foundation_progress(make_state(foundations={Suit.HEARTS: 13})) == 25

    def test_complete(self, make_state):
        assert foundation_progress(make_state(foundations={suit: 13 for suit in Suit})) == 100

    def test_rounding(self, make_state):
        # 1 / 52 = 1.9%
        state = make_state(foundations={Suit.CLUBS: 1})
        assert foundation_progress(state) == 2
