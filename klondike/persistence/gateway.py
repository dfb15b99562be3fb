"""
Persistence Gateway - Snapshots the game, high score and missions.

All persisted data lives in a KeyValueStore under fixed keys:
- solitaireHighScore: integer string
- solitaireGameState: JSON snapshot of every zone plus points and a
  millisecond timestamp; cards as {suit, value, faceUp}
- dailyMissions / missionsLastUpdate: mission set and ISO-8601 rotation time
- <panel>PanelVisible: "true" / "false"

Design decisions:
- Loading never raises: corrupt or stale data is logged, removed,
  and reported as absent so the caller deals a fresh game
- Restored games are checked against the 52-card invariant
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable
import json
import logging
import time

from ..engine_core.cards import Card, Suit, SUITS
from ..engine_core.state import GameState, GamePhase, Zone, InvalidState, TABLEAU_COLUMNS, verify_deck
from ..engine_core.reducer import check_win
from ..progression.missions import Mission, parse_time
from .store import KeyValueStore

logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "solitaireHighScore"
GAME_STATE_KEY = "solitaireGameState"
MISSIONS_KEY = "dailyMissions"
MISSIONS_UPDATED_KEY = "missionsLastUpdate"
PANEL_KEY_SUFFIX = "PanelVisible"

DEFAULT_MAX_AGE_HOURS = 24.0


class PersistenceCorrupt(Exception):
    """Raised when a stored snapshot cannot be parsed or restored."""


class StaleSnapshot(Exception):
    """Raised when a stored snapshot is older than the allowed age."""

    def __init__(self, age_hours: float):
        self.age_hours = age_hours
        super().__init__(f"Snapshot is {age_hours:.1f} hours old")


# =============================================================================
# Snapshot codec
# =============================================================================

def encode_cards(cards: list[Card]) -> list[dict[str, Any]]:
    return [{"suit": c.suit.value, "value": c.rank, "faceUp": c.face_up} for c in cards]


def decode_cards(data: Any) -> list[Card]:
    if not isinstance(data, list):
        raise PersistenceCorrupt(f"Expected a list of cards, got {type(data).__name__}")
    try:
        return [Card(Suit(d["suit"]), int(d["value"]), bool(d["faceUp"])) for d in data]
    except (KeyError, TypeError, ValueError) as e:
        raise PersistenceCorrupt(f"Bad card record: {e}") from e


def encode_snapshot(state: GameState, timestamp_ms: int) -> dict[str, Any]:
    """Snapshot dict for state, stamped with timestamp_ms."""
    return {
        "deck": encode_cards(state.stock.cards),
        "waste": encode_cards(state.waste.cards),
        "foundations": {
            suit.value: encode_cards(state.foundation(suit).cards) for suit in SUITS
        },
        "tableau": [encode_cards(column.cards) for column in state.tableau],
        "points": state.score,
        "timestamp": timestamp_ms,
    }


def decode_snapshot(data: Any) -> GameState:
    """
    Rebuild a GameState from a snapshot dict.

    Raises PersistenceCorrupt on missing fields or a broken deck.
    """
    if not isinstance(data, dict):
        raise PersistenceCorrupt("Snapshot is not an object")

    missing = [k for k in ("deck", "waste", "foundations", "tableau", "points", "timestamp") if k not in data]
    if missing:
        raise PersistenceCorrupt(f"Snapshot missing fields: {', '.join(missing)}")

    foundations = data["foundations"]
    if not isinstance(foundations, dict):
        raise PersistenceCorrupt("Snapshot foundations is not an object")
    tableau = data["tableau"]
    if not isinstance(tableau, list) or len(tableau) != TABLEAU_COLUMNS:
        raise PersistenceCorrupt(f"Snapshot tableau must hold {TABLEAU_COLUMNS} columns")

    try:
        points = int(data["points"])
        timestamp_ms = float(data["timestamp"])
    except (TypeError, ValueError) as e:
        raise PersistenceCorrupt(f"Bad points or timestamp: {e}") from e

    state = GameState(
        game_id=f"klondike_restored_{int(timestamp_ms)}",
        score=points,
        timestamp=timestamp_ms / 1000,
    )
    state.stock.push(*decode_cards(data["deck"]))
    state.waste.push(*decode_cards(data["waste"]))
    for suit in SUITS:
        if suit.value not in foundations:
            raise PersistenceCorrupt(f"Snapshot missing {suit.value} foundation")
        pile = decode_cards(foundations[suit.value])
        if any(c.suit != suit for c in pile):
            raise PersistenceCorrupt(f"Foreign card on the {suit.value} foundation")
        state.foundation(suit).push(*pile)
    for column, cards in zip(state.tableau, tableau):
        column.push(*decode_cards(cards))

    try:
        verify_deck(state)
    except InvalidState as e:
        raise PersistenceCorrupt(str(e)) from e

    state.phase = GamePhase.WON if check_win(state) else GamePhase.PLAYING
    return state


# =============================================================================
# Gateway
# =============================================================================

@dataclass
class PersistenceGateway:
    """
    Reads and writes everything a player profile persists.

    Usage:
        gateway = PersistenceGateway(JsonFileStore(path))
        state = gateway.load_game() or deal_new_game()
        ...
        gateway.save_game(state)
    """
    store: KeyValueStore
    max_age_hours: float = DEFAULT_MAX_AGE_HOURS
    clock: Callable[[], float] = field(default=time.time)

    # -------------------------------------------------------------------------
    # Game snapshot
    # -------------------------------------------------------------------------

    def save_game(self, state: GameState):
        """Write a snapshot of state stamped with the current time."""
        now = self.clock()
        snapshot = encode_snapshot(state, int(now * 1000))
        self.store.set(GAME_STATE_KEY, json.dumps(snapshot))
        state.timestamp = now

    def load_game(self) -> GameState | None:
        """
        The persisted game, or None.

        Corrupt and stale snapshots are discarded.
        """
        raw = self.store.get(GAME_STATE_KEY)
        if raw is None:
            return None

        try:
            state = self._restore(raw)
        except (PersistenceCorrupt, StaleSnapshot) as e:
            logger.warning("Discarding saved game: %s", e)
            self.clear_game()
            return None

        state.high_score = max(self.load_high_score(), state.score)
        return state

    def clear_game(self):
        self.store.remove(GAME_STATE_KEY)

    def _restore(self, raw: str) -> GameState:
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceCorrupt(f"Snapshot is not valid JSON: {e}") from e

        state = decode_snapshot(data)

        age_hours = (self.clock() - state.timestamp) / 3600
        if age_hours > self.max_age_hours:
            raise StaleSnapshot(age_hours)
        return state

    # -------------------------------------------------------------------------
    # High score
    # -------------------------------------------------------------------------

    def load_high_score(self) -> int:
        raw = self.store.get(HIGH_SCORE_KEY)
        if raw is None:
            return 0
        try:
            return max(0, int(raw))
        except ValueError:
            logger.warning("Ignoring unreadable high score %r", raw)
            return 0

    def save_high_score(self, high_score: int):
        self.store.set(HIGH_SCORE_KEY, str(high_score))

    # -------------------------------------------------------------------------
    # Missions
    # -------------------------------------------------------------------------

    def load_missions(self) -> tuple[list[Mission], datetime | None]:
        """
        The persisted mission set and its rotation time.

        An unreadable set comes back empty, which forces a rotation.
        """
        raw_missions = self.store.get(MISSIONS_KEY)
        raw_updated = self.store.get(MISSIONS_UPDATED_KEY)
        if raw_missions is None or raw_updated is None:
            return [], None

        try:
            missions = [Mission.from_dict(m) for m in json.loads(raw_missions)]
            updated = parse_time(raw_updated)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding saved missions: %s", e)
            return [], None
        return missions, updated

    def save_missions(self, missions: list[Mission], updated: datetime):
        self.store.set(MISSIONS_KEY, json.dumps([m.to_dict() for m in missions]))
        self.store.set(MISSIONS_UPDATED_KEY, updated.isoformat())

    # -------------------------------------------------------------------------
    # Panels
    # -------------------------------------------------------------------------

    def load_panel_visible(self, panel: str, default: bool = True) -> bool:
        raw = self.store.get(f"{panel}{PANEL_KEY_SUFFIX}")
        if raw is None:
            return default
        return raw == "true"

    def save_panel_visible(self, panel: str, visible: bool):
        self.store.set(f"{panel}{PANEL_KEY_SUFFIX}", "true" if visible else "false")

    def panel_states(self) -> dict[str, bool]:
        """Every panel with a stored visibility."""
        return {
            key[: -len(PANEL_KEY_SUFFIX)]: self.store.get(key) == "true"
            for key in self.store.keys()
            if key.endswith(PANEL_KEY_SUFFIX) and len(key) > len(PANEL_KEY_SUFFIX)
        }
