"""
Scoring - Score accumulation and the persisted high score.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import TYPE_CHECKING
import logging

from ..engine_core.action import PointAward

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..persistence.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass
class Scoreboard:
    """
    Applies point awards to a game state.

    A new high score is written through the gateway as soon as it
    is reached.
    """
    gateway: PersistenceGateway | None = None

    # Awards applied since the last drain, for notifications
    history: list[PointAward] = field(default_factory=list)

    def add_points(self, state: GameState, amount: int, reason: str = "") -> int:
        """Add amount to the score. Returns the new score."""
        state.score += amount
        self.history.append(PointAward(amount, reason))

        if state.score > state.high_score:
            state.high_score = state.score
            if self.gateway is not None:
                self.gateway.save_high_score(state.high_score)
            logger.debug("New high score %d", state.high_score)

        return state.score

    def drain(self) -> list[PointAward]:
        """Return and clear the recorded awards."""
        awards, self.history = self.history, []
        return awards

    def load_high_score(self) -> int:
        if self.gateway is None:
            return 0
        return self.gateway.load_high_score()


def add_points(
    state: GameState,
    amount: int,
    reason: str = "",
    gateway: PersistenceGateway | None = None,
) -> int:
    """
    Convenience function to add points.

    Creates a Scoreboard and applies the award.
    """
    return Scoreboard(gateway=gateway).add_points(state, amount, reason)
