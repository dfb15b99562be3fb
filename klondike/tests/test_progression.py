"""
Tests for scoring and daily missions.

Tests:
- Points raise the high score, which is persisted at once
- Missions rotate on a new calendar day
- A mission reward is paid exactly once
- Countdown to the next refresh
"""

import random
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from ..engine_core.action import ProgressEvent
from ..persistence.gateway import HIGH_SCORE_KEY, MISSIONS_KEY, MISSIONS_UPDATED_KEY
from ..progression.scoring import Scoreboard, add_points
from ..progression.missions import (
    Mission,
    MissionBoard,
    MISSION_CATALOG,
    ACTIVE_MISSIONS,
    generate_missions,
    next_midnight,
    parse_time,
)
from .conftest import TODAY


def catalog(mission_id: str, progress: int = 0) -> Mission:
    mission = next(m for m in MISSION_CATALOG if m.id == mission_id)
    return replace(mission, progress=progress)


@pytest.fixture
def scoreboard(gateway) -> Scoreboard:
    return Scoreboard(gateway=gateway)


@pytest.fixture
def board(gateway, scoreboard) -> MissionBoard:
    return MissionBoard(gateway=gateway, scoreboard=scoreboard, rng=random.Random(1))


class TestScoreboard:
    """Tests for score accumulation."""

    def test_add_points(self, make_state, scoreboard):
        state = make_state()

        assert scoreboard.add_points(state, 10, "Move to foundation") == 10
        assert state.score == 10

    def test_new_high_score_saved_immediately(self, make_state, scoreboard, store):
        state = make_state()
        scoreboard.add_points(state, 30)

        assert state.high_score == 30
        assert store.get(HIGH_SCORE_KEY) == "30"

    def test_below_high_score(self, make_state, scoreboard, store):
        """Scoring under the high score leaves it alone."""
        state = make_state()
        state.high_score = 100

        scoreboard.add_points(state, 10)

        assert state.high_score == 100
        assert store.get(HIGH_SCORE_KEY) is None

    def test_drain(self, make_state, scoreboard):
        state = make_state()
        scoreboard.add_points(state, 5, "Reveal card")
        scoreboard.add_points(state, 2, "Tableau move")

        awards = scoreboard.drain()

        assert [(a.amount, a.reason) for a in awards] == [(5, "Reveal card"), (2, "Tableau move")]
        assert scoreboard.drain() == []

    def test_without_gateway(self, make_state):
        state = make_state()
        assert add_points(state, 7) == 7
        assert state.high_score == 7


class TestMission:
    """Tests for a single mission."""

    def test_catalog(self):
        assert len(MISSION_CATALOG) == 5
        assert {m.type for m in MISSION_CATALOG} == set(ProgressEvent)

    def test_advance_reports_completion_once(self):
        mission = catalog("kings_moved", progress=2)

        assert mission.advance() is True
        assert mission.is_complete
        assert mission.advance() is False
        assert mission.progress == 3

    def test_from_dict_round_trip(self):
        mission = catalog("reveal_cards", progress=4)
        assert Mission.from_dict(mission.to_dict()) == mission

    def test_from_dict_rejects_overflow(self):
        data = catalog("kings_moved").to_dict()
        data["progress"] = 9
        with pytest.raises(ValueError):
            Mission.from_dict(data)

    def test_generate(self):
        missions = generate_missions(random.Random(3))

        assert len(missions) == ACTIVE_MISSIONS
        assert len({m.id for m in missions}) == ACTIVE_MISSIONS
        assert all(m.progress == 0 for m in missions)

    def test_generate_leaves_catalog_alone(self):
        missions = generate_missions(random.Random(3))
        missions[0].advance()
        assert all(m.progress == 0 for m in MISSION_CATALOG)


class TestRotation:
    """Tests for daily rotation."""

    def test_first_load_generates_and_saves(self, board, store):
        assert board.load(TODAY) is True

        assert len(board.missions) == ACTIVE_MISSIONS
        assert board.last_update == TODAY
        assert store.get(MISSIONS_KEY) is not None
        assert store.get(MISSIONS_UPDATED_KEY) == TODAY.isoformat()

    def test_same_day_keeps_set(self, board, gateway, scoreboard):
        board.load(TODAY)
        board.missions[0].advance()
        gateway.save_missions(board.missions, board.last_update)

        later = MissionBoard(gateway=gateway, scoreboard=scoreboard, rng=random.Random(99))
        assert later.load(TODAY + timedelta(hours=5)) is False

        assert [m.id for m in later.missions] == [m.id for m in board.missions]
        assert later.missions[0].progress == 1

    def test_yesterday_rotates(self, board):
        """A set stamped yesterday is replaced with fresh progress."""
        board.missions = [catalog("foundation_cards", 5), catalog("reveal_cards", 7), catalog("win_game")]
        board.last_update = TODAY - timedelta(days=1)

        assert board.rotate_missions_if_needed(TODAY) is True
        assert all(m.progress == 0 for m in board.missions)
        assert board.last_update == TODAY

    def test_just_before_midnight(self, board):
        board.load(datetime(2026, 10, 19, 0, 0, 1))
        assert board.rotate_missions_if_needed(datetime(2026, 10, 19, 23, 59, 59)) is False
        assert board.rotate_missions_if_needed(datetime(2026, 10, 20, 0, 0, 0)) is True

    def test_unreadable_set_rotates(self, board, store):
        store.set(MISSIONS_KEY, "garbage")
        store.set(MISSIONS_UPDATED_KEY, TODAY.isoformat())

        assert board.load(TODAY) is True
        assert len(board.missions) == ACTIVE_MISSIONS

    def test_utc_stamp_loads(self, board, gateway, store):
        """A stored stamp with a Z suffix is compared as local time."""
        gateway.save_missions(MISSION_CATALOG[:3], TODAY)
        store.set(MISSIONS_UPDATED_KEY, "2026-10-19T08:00:00.000Z")

        board.load(TODAY)

        assert board.last_update.tzinfo is None

    def test_aware_now(self, board):
        board.load(TODAY)
        now = datetime(2026, 10, 21, 12, 0, tzinfo=timezone.utc)

        assert board.rotate_missions_if_needed(now) is True
        assert board.last_update.tzinfo is None
        assert board.rotate_missions_if_needed(now) is False


class TestParseTime:
    """Tests for parse_time."""

    def test_naive(self):
        assert parse_time("2026-10-19T23:59:00") == datetime(2026, 10, 19, 23, 59)

    @pytest.mark.parametrize("text", ["2026-10-19T12:00:00Z", "2026-10-19T12:00:00.000Z", "2026-10-19T12:00:00+00:00"])
    def test_utc_forms(self, text):
        expected = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
        assert parse_time(text) == expected

    def test_garbage(self):
        with pytest.raises(ValueError):
            parse_time("soon")


class TestMissionProgress:
    """Tests for progress and rewards."""

    def test_progress_counts_matching_events(self, board, make_state):
        board.missions = [catalog("tableau_moves"), catalog("kings_moved")]
        board.last_update = TODAY
        state = make_state()

        board.update_mission_progress(ProgressEvent.TABLEAU_MOVE, state)

        assert board.missions[0].progress == 1
        assert board.missions[1].progress == 0
        assert state.score == 0

    def test_reward_paid_once(self, board, make_state, store):
        """Completing a mission pays its reward; later events pay nothing."""
        board.missions = [catalog("foundation_cards", progress=9)]
        board.last_update = TODAY
        state = make_state()

        completed = board.update_mission_progress(ProgressEvent.FOUNDATION_MOVE, state)

        assert [m.id for m in completed] == ["foundation_cards"]
        assert state.score == 50
        assert store.get(HIGH_SCORE_KEY) == "50"

        assert board.update_mission_progress(ProgressEvent.FOUNDATION_MOVE, state) == []
        assert state.score == 50
        assert board.missions[0].progress == 10

    def test_progress_saved(self, board, make_state, gateway):
        board.missions = [catalog("reveal_cards")]
        board.last_update = TODAY

        board.update_mission_progress(ProgressEvent.REVEAL_CARD, make_state())

        missions, _ = gateway.load_missions()
        assert missions[0].progress == 1


class TestRefreshCountdown:
    """Tests for the time until the next rotation."""

    def test_next_midnight(self):
        assert next_midnight(datetime(2026, 12, 31, 10, 0)) == datetime(2027, 1, 1)

    def test_time_until_refresh(self, board):
        assert board.time_until_refresh(datetime(2026, 10, 19, 23, 0)) == timedelta(hours=1)
