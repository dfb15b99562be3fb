"""
Progression - Score, high score and daily missions.

Observes the progress events produced by the move engine.
"""

from .scoring import Scoreboard, add_points
from .missions import (
    Mission,
    MissionBoard,
    MISSION_CATALOG,
    ACTIVE_MISSIONS,
    generate_missions,
    next_midnight,
)

__all__ = [
    "Scoreboard",
    "add_points",
    "Mission",
    "MissionBoard",
    "MISSION_CATALOG",
    "ACTIVE_MISSIONS",
    "generate_missions",
    "next_midnight",
]
