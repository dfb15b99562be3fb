"""
Daily Missions - Rotating progress goals tied to gameplay events.

Three missions drawn from a fixed catalog of five are active at a time.
The set is replaced at the start of each local calendar day; a mission's
reward is paid exactly once, on the move that completes it.
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any
import logging
import random

from ..engine_core.action import ProgressEvent

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..persistence.gateway import PersistenceGateway
    from .scoring import Scoreboard

logger = logging.getLogger(__name__)

ACTIVE_MISSIONS = 3


@dataclass
class Mission:
    """A progress goal. 0 <= progress <= target."""
    id: str
    title: str
    description: str
    target: int
    reward: int
    type: ProgressEvent
    progress: int = 0

    @property
    def is_complete(self) -> bool:
        return self.progress >= self.target

    def advance(self) -> bool:
        """
        Count one qualifying event.

        Returns True only for the increment that reaches the target.
        """
        if self.is_complete:
            return False
        self.progress += 1
        return self.is_complete

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "target": self.target,
            "progress": self.progress,
            "reward": self.reward,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Mission:
        """Raises KeyError, TypeError or ValueError on malformed data."""
        mission = cls(
            id=str(data["id"]),
            title=str(data["title"]),
            description=str(data["description"]),
            target=int(data["target"]),
            reward=int(data["reward"]),
            type=ProgressEvent(data["type"]),
            progress=int(data.get("progress", 0)),
        )
        if mission.target < 1 or not 0 <= mission.progress <= mission.target:
            raise ValueError(f"Mission {mission.id} has progress {mission.progress}/{mission.target}")
        return mission


MISSION_CATALOG = [
    Mission(
        id="foundation_cards",
        title="Foundation Builder",
        description="Move 10 cards to foundation piles",
        target=10,
        reward=50,
        type=ProgressEvent.FOUNDATION_MOVE,
    ),
    Mission(
        id="reveal_cards",
        title="Card Revealer",
        description="Reveal 15 face-down cards",
        target=15,
        reward=40,
        type=ProgressEvent.REVEAL_CARD,
    ),
    Mission(
        id="kings_moved",
        title="King Placer",
        description="Move 3 kings to empty tableau spots",
        target=3,
        reward=30,
        type=ProgressEvent.KING_MOVE,
    ),
    Mission(
        id="tableau_moves",
        title="Tableau Master",
        description="Make 20 moves between tableau piles",
        target=20,
        reward=45,
        type=ProgressEvent.TABLEAU_MOVE,
    ),
    Mission(
        id="win_game",
        title="Victory Seeker",
        description="Win a game",
        target=1,
        reward=100,
        type=ProgressEvent.WIN_GAME,
    ),
]


def generate_missions(rng: random.Random) -> list[Mission]:
    """Pick ACTIVE_MISSIONS distinct catalog entries, progress reset."""
    return [replace(m, progress=0) for m in rng.sample(MISSION_CATALOG, ACTIVE_MISSIONS)]


def local_time(moment: datetime) -> datetime:
    """Naive local time. Aware values are converted to the host zone first."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


def parse_time(text: str) -> datetime:
    """
    Parse an ISO-8601 time as naive local time.

    Accepts a trailing Z for UTC. Raises ValueError on anything else.
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return local_time(datetime.fromisoformat(text))


def is_same_day(first: datetime, second: datetime) -> bool:
    return first.date() == second.date()


def next_midnight(moment: datetime) -> datetime:
    """Start of the calendar day after moment."""
    following = moment + timedelta(days=1)
    return following.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class MissionBoard:
    """
    The active mission set for one player profile.

    Loads from and saves to the gateway; reward points go through
    the scoreboard so the high score stays current.
    """
    gateway: PersistenceGateway
    scoreboard: Scoreboard
    rng: random.Random = field(default_factory=random.Random)
    missions: list[Mission] = field(default_factory=list)
    last_update: datetime | None = None

    def load(self, now: datetime) -> bool:
        """
        Restore the persisted set, rotating it when it is out of date.

        Returns True if a new set was generated.
        """
        self.missions, self.last_update = self.gateway.load_missions()
        return self.rotate_missions_if_needed(now)

    def needs_rotation(self, now: datetime) -> bool:
        if not self.missions or self.last_update is None:
            return True
        now = local_time(now)
        self.last_update = local_time(self.last_update)
        if not is_same_day(self.last_update, now):
            return True
        return now >= next_midnight(self.last_update)

    def rotate_missions_if_needed(self, now: datetime) -> bool:
        """Replace the set if it is missing or from another day."""
        now = local_time(now)
        if not self.needs_rotation(now):
            return False

        self.missions = generate_missions(self.rng)
        self.last_update = now
        self.gateway.save_missions(self.missions, now)
        logger.info(
            "Rotated daily missions: %s",
            ", ".join(m.id for m in self.missions),
        )
        return True

    def update_mission_progress(self, mission_type: ProgressEvent, state: GameState) -> list[Mission]:
        """
        Count one event of mission_type against every matching mission.

        Pays out rewards for missions completed by this event and
        returns them.
        """
        matching = [m for m in self.missions if m.type == mission_type and not m.is_complete]
        if not matching:
            return []

        completed = []
        for mission in matching:
            if mission.advance():
                completed.append(mission)
                self.scoreboard.add_points(state, mission.reward, f"Mission complete: {mission.title}")
                logger.info("Mission %s complete (+%d)", mission.id, mission.reward)

        self.gateway.save_missions(self.missions, self.last_update or datetime.now())
        return completed

    def time_until_refresh(self, now: datetime) -> timedelta:
        """Time left until the next local midnight."""
        now = local_time(now)
        return next_midnight(now) - now
