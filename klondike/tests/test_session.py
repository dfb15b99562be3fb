"""
Tests for the game loop and session manager.

Tests:
- Starting restores a saved game or deals a new one
- Moves feed scoring, missions and persistence
- Notifications for render, win and stuck
- The periodic tick (mission rotation, autosave)
- Session lifecycle
"""

import json
from dataclasses import replace
from datetime import timedelta, datetime

import pytest

from ..engine_core.cards import Suit
from ..engine_core.action import ErrorCode, ProgressEvent
from ..engine_core.action_generator import NO_MOVES_HINT
from ..persistence.gateway import GAME_STATE_KEY, HIGH_SCORE_KEY, MISSIONS_UPDATED_KEY
from ..progression.missions import MISSION_CATALOG
from ..session.game_loop import GameLoop, LoopState, NotificationKind
from ..session.manager import SessionManager, SessionState
from .conftest import TODAY


ALMOST_WON = {Suit.HEARTS: 13, Suit.DIAMONDS: 13, Suit.CLUBS: 13, Suit.SPADES: 12}


def layout(state) -> list:
    return [[(c.ref, c.face_up) for c in zone.cards] for zone in state.zones()]


@pytest.fixture
def quiet_loop(loop) -> GameLoop:
    """Loop with no active missions, so only move points are paid."""
    loop.missions.missions = []
    return loop


class TestStart:
    """Tests for starting a game."""

    def test_fresh_start_deals_and_saves(self, loop, store):
        assert loop.state is not None
        assert loop.state.stock.count == 24
        assert store.get(GAME_STATE_KEY) is not None
        assert len(loop.missions.missions) == 3

    def test_restart_restores(self, loop, gateway, clock):
        """A second loop on the same store resumes the game."""
        loop.draw_card()

        resumed = GameLoop(gateway=gateway, clock=clock, calendar=lambda: TODAY)

        assert resumed.start() is True
        assert layout(resumed.state) == layout(loop.state)

    def test_stale_game_is_replaced(self, loop, gateway, clock):
        clock.advance(25 * 3600)

        resumed = GameLoop(gateway=gateway, clock=clock, calendar=lambda: TODAY)

        assert resumed.start(random_seed=9) is False
        assert resumed.state.waste.is_empty

    def test_start_with_utc_mission_stamp(self, loop, gateway, store, clock):
        """A mission stamp written in UTC does not stop the game from starting."""
        store.set(MISSIONS_UPDATED_KEY, "2026-10-19T08:00:00.000Z")

        resumed = GameLoop(gateway=gateway, clock=clock, calendar=lambda: TODAY)

        assert resumed.start() is True
        assert len(resumed.missions.missions) == 3

    def test_new_game_keeps_high_score(self, quiet_loop, make_state):
        quiet_loop.state = make_state(waste=["AH"], stock=["5H"])
        quiet_loop.move_to_foundation("AH")

        result = quiet_loop.new_game(random_seed=5)

        assert result.success
        assert quiet_loop.state.score == 0
        assert quiet_loop.state.high_score == 10
        assert quiet_loop.state.stock.count == 24


class TestMoves:
    """Tests for moves through the loop."""

    def test_draw(self, loop, store):
        result = loop.draw_card()

        assert result.success
        assert loop.state.waste.count == 1
        assert len(json.loads(store.get(GAME_STATE_KEY))["waste"]) == 1

    def test_points_and_high_score(self, quiet_loop, make_state, store):
        quiet_loop.state = make_state(waste=["AH"], stock=["5H"])

        result = quiet_loop.move_to_foundation("AH")

        assert result.success
        assert result.points == 10
        assert quiet_loop.state.score == 10
        assert store.get(HIGH_SCORE_KEY) == "10"
        assert result.events == [ProgressEvent.FOUNDATION_MOVE]

    def test_mission_reward_included(self, loop, make_state):
        """The move that completes a mission also reports its reward."""
        loop.missions.missions = [replace(MISSION_CATALOG[0], progress=9)]
        loop.state = make_state(waste=["AH"], stock=["5H"])

        result = loop.move_to_foundation("AH")

        assert result.completed_missions == ["foundation_cards"]
        assert result.points == 60
        assert loop.state.score == 60

    def test_declined_move(self, loop):
        """A declined move changes nothing and notifies nobody."""
        received = []
        loop.subscribe(received.append)
        before = layout(loop.state)

        result = loop.move_to_tableau("ZZ", 0)

        assert not result.success
        assert result.error_code == ErrorCode.ILLEGAL_MOVE
        assert result.notifications == []
        assert received == []
        assert layout(loop.state) == before

    def test_unknown_suit(self, loop):
        result = loop.move_to_foundation("AH", "stars")
        assert not result.success
        assert "stars" in result.error

    def test_reveal(self, quiet_loop, make_state):
        quiet_loop.state = make_state(tableau=[["-5H"]], stock=["AS"])

        result = quiet_loop.reveal_top(0)

        assert result.success
        assert quiet_loop.state.score == 5


class TestNotifications:
    """Tests for notifications."""

    def test_render_after_move(self, loop):
        received = []
        loop.subscribe(received.append)

        loop.draw_card()

        assert [n.kind for n in received] == [NotificationKind.RENDER]

    def test_unsubscribe(self, loop):
        received = []
        unsubscribe = loop.subscribe(received.append)
        unsubscribe()

        loop.draw_card()

        assert received == []

    def test_win(self, quiet_loop, make_state):
        quiet_loop.state = make_state(waste=["KS"], foundations=ALMOST_WON)

        result = quiet_loop.move_to_foundation("KS")

        assert result.loop_state == LoopState.WON
        assert [n.kind for n in result.notifications] == [NotificationKind.RENDER, NotificationKind.WIN]
        assert result.notifications[1].message == "You won! Final score: 110"

    def test_no_moves_after_win(self, quiet_loop, make_state):
        quiet_loop.state = make_state(waste=["KS"], foundations=ALMOST_WON)
        quiet_loop.move_to_foundation("KS")

        assert not quiet_loop.draw_card().success
        assert quiet_loop.state.score == 110

    def test_stuck(self, quiet_loop, make_state):
        """With no move left the player gets a hint."""
        quiet_loop.state = make_state(waste=["AH"], tableau=[["5S"]])

        result = quiet_loop.move_to_foundation("AH")

        assert result.loop_state == LoopState.STUCK
        assert result.hint == NO_MOVES_HINT
        stuck = result.notifications[-1]
        assert stuck.kind == NotificationKind.STUCK
        assert stuck.message == f"No more moves available!\n{NO_MOVES_HINT}"

    def test_progress(self, quiet_loop, make_state):
        quiet_loop.state = make_state(foundations={Suit.HEARTS: 13, Suit.SPADES: 13})
        assert quiet_loop.progress() == 50


class TestTick:
    """Tests for the periodic tick."""

    def test_autosave_interval(self, loop, clock):
        assert loop.tick().saved is False

        clock.advance(30)
        assert loop.tick().saved is True
        assert loop.tick().saved is False

    def test_autosave_writes_snapshot(self, loop, clock, store):
        store.remove(GAME_STATE_KEY)
        clock.advance(31)

        loop.tick()

        assert store.get(GAME_STATE_KEY) is not None

    def test_rotation_at_day_change(self, loop):
        assert loop.tick(TODAY).missions_rotated is False

        tomorrow = TODAY + timedelta(days=1)
        assert loop.tick(tomorrow).missions_rotated is True
        assert loop.tick(tomorrow).missions_rotated is False

    def test_countdown(self, loop):
        assert loop.tick(datetime(2026, 10, 19, 23, 59, 0)).seconds_until_refresh == 60


class TestSessionManager:
    """Tests for session lifecycle."""

    @pytest.fixture
    def manager(self) -> SessionManager:
        return SessionManager()

    def test_create(self, manager):
        session = manager.create_session(profile="alice", random_seed=1)

        assert session.loop.state is not None
        assert session.restored is False
        assert session.is_active()
        assert manager.list_active_sessions() == [session.session_id]

    def test_profile_resumes(self, manager):
        """A second session for a profile picks up its saved game."""
        first = manager.create_session(profile="alice", random_seed=1)
        first.loop.draw_card()
        manager.end_session(first.session_id)

        second = manager.create_session(profile="alice")

        assert second.restored is True
        assert layout(second.loop.state) == layout(first.loop.state)

    def test_profiles_are_separate(self, manager):
        manager.create_session(profile="alice", random_seed=1)
        assert manager.create_session(profile="bob").restored is False

    def test_end_session(self, manager):
        session = manager.create_session()

        assert manager.end_session(session.session_id) is True
        assert session.state == SessionState.ENDED
        assert manager.get_session(session.session_id) is None
        assert manager.end_session(session.session_id) is False

    def test_cleanup_stale(self, manager):
        idle = manager.create_session(profile="alice")
        busy = manager.create_session(profile="bob")
        idle.last_activity -= 7200

        assert manager.cleanup_stale_sessions(max_idle_seconds=3600) == [idle.session_id]
        assert idle.state == SessionState.ABANDONED
        assert manager.list_active_sessions() == [busy.session_id]
