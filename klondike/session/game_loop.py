"""
Game Loop - Drives one Klondike game for a presentation adapter.

The loop:
1. Adapter issues a move request (draw, foundation, tableau, reveal)
2. Reducer validates and applies it
3. Point awards and progress events flow into scoring and missions
4. The game is snapshotted through the persistence gateway
5. Subscribers are notified (render, win, stuck with a hint)

A periodic tick, run on the same timeline as moves, rotates the daily
missions at midnight and autosaves.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable
import logging
import random
import time

from ..engine_core.cards import Card, Suit
from ..engine_core.state import GameState
from ..engine_core.action import Action, ActionResult, ErrorCode, PointAward, ProgressEvent
from ..engine_core.reducer import Reducer
from ..engine_core.action_generator import has_any_legal_move, compute_hint, foundation_progress
from ..engine_core.setup import deal_new_game
from ..persistence.gateway import PersistenceGateway
from ..progression.scoring import Scoreboard
from ..progression.missions import MissionBoard

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_SECONDS = 30.0


class LoopState(Enum):
    """State of the game loop, as seen by the player."""
    PLAYING = "playing"
    STUCK = "stuck"  # Advisory: drawing or recycling may still be possible
    WON = "won"


class NotificationKind(Enum):
    """Signals pushed to the presentation adapter."""
    RENDER = "render"
    WIN = "win"
    STUCK = "stuck"


@dataclass
class Notification:
    kind: NotificationKind
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class TurnResult:
    """
    Result of processing one move request.

    A declined move has success=False, an error code, and no
    notifications; the game is left exactly as it was.
    """
    success: bool
    loop_state: LoopState

    error: str | None = None
    error_code: str | None = None

    # What the move did
    changes: list[str] = field(default_factory=list)
    events: list[ProgressEvent] = field(default_factory=list)
    awards: list[PointAward] = field(default_factory=list)
    completed_missions: list[str] = field(default_factory=list)

    notifications: list[Notification] = field(default_factory=list)

    # Set when the game is stuck after this move
    hint: str | None = None

    @property
    def points(self) -> int:
        return sum(a.amount for a in self.awards)


@dataclass
class TickResult:
    """Result of one periodic tick."""
    missions_rotated: bool = False
    saved: bool = False
    seconds_until_refresh: int = 0


class GameLoop:
    """
    The engine facade for one player profile.

    Usage:
        loop = GameLoop(PersistenceGateway(MemoryStore()))
        loop.start()

        result = loop.move_to_tableau("QH", 3)
        if not result.success:
            # Declined - nothing changed
            ...

        # Once a second
        loop.tick()
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        rng: random.Random | None = None,
        autosave_seconds: float = DEFAULT_AUTOSAVE_SECONDS,
        clock: Callable[[], float] = time.time,
        calendar: Callable[[], datetime] = datetime.now,
    ):
        self.gateway = gateway
        self.rng = rng or random.Random()
        self.autosave_seconds = autosave_seconds
        self.clock = clock
        self.calendar = calendar

        self.reducer = Reducer()
        self.scoreboard = Scoreboard(gateway=gateway)
        self.missions = MissionBoard(gateway=gateway, scoreboard=self.scoreboard, rng=self.rng)

        self.state: GameState | None = None
        self._subscribers: list[Callable[[Notification], None]] = []
        self._last_save = 0.0

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self, random_seed: int | None = None) -> bool:
        """
        Restore the saved game, or deal a new one.

        Returns True if a saved game was restored.
        """
        self.missions.load(self.calendar())

        restored = self.gateway.load_game()
        if restored is not None:
            self.state = restored
            self._last_save = self.clock()
            logger.info("Restored saved game %s (score %d)", restored.game_id, restored.score)
            return True

        self._deal(random_seed)
        return False

    def new_game(self, random_seed: int | None = None) -> TurnResult:
        """Discard the current game and deal a fresh one."""
        self.gateway.clear_game()
        self._deal(random_seed)
        return self._turn_result(ActionResult.success_with_state(self.state, changes=["New game dealt"]), [])

    def save(self):
        """Snapshot the current game."""
        if self.state is None:
            return
        self.gateway.save_game(self.state)
        self._last_save = self.clock()

    def subscribe(self, callback: Callable[[Notification], None]) -> Callable[[], None]:
        """
        Register for notifications.

        Returns a function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _deal(self, random_seed: int | None):
        high_score = max(self.scoreboard.load_high_score(), self.state.high_score if self.state else 0)
        rng = random.Random(random_seed) if random_seed is not None else self.rng
        self.state = deal_new_game(
            random_seed=random_seed,
            rng=rng,
            high_score=high_score,
            now=self.clock(),
        )
        self.save()
        logger.info("Dealt new game %s", self.state.game_id)

    # =========================================================================
    # Moves
    # =========================================================================

    def draw_card(self) -> TurnResult:
        return self._play(Action.draw())

    def move_to_foundation(self, card_ref: str | Card, suit: str | Suit | None = None) -> TurnResult:
        """Move the named card onto a foundation."""
        try:
            card = self._parse_card(card_ref)
            target = self._parse_suit(suit)
        except ValueError as e:
            return self._declined(str(e))
        return self._play(Action.to_foundation(card, target))

    def move_to_tableau(self, card_ref: str | Card, column: int) -> TurnResult:
        """Move the named card, and everything above it, onto a column."""
        try:
            card = self._parse_card(card_ref)
        except ValueError as e:
            return self._declined(str(e))
        return self._play(Action.to_tableau(card, column))

    def reveal_top(self, column: int) -> TurnResult:
        return self._play(Action.reveal(column))

    def _play(self, action: Action) -> TurnResult:
        if self.state is None:
            return self._declined("No game in progress", ErrorCode.INVALID_STATE)

        result = self.reducer.apply(self.state, action)
        if not result.success:
            return TurnResult(
                success=False,
                loop_state=self.loop_state,
                error=result.error,
                error_code=result.error_code,
            )

        self.state = result.new_state
        for award in result.awards:
            self.scoreboard.add_points(self.state, award.amount, award.reason)

        completed = []
        for event in result.events:
            completed.extend(m.id for m in self.missions.update_mission_progress(event, self.state))

        self.save()
        return self._turn_result(result, completed)

    def _turn_result(self, result: ActionResult, completed: list[str]) -> TurnResult:
        notifications = [Notification(NotificationKind.RENDER, data={"score": self.state.score})]
        hint = None

        if self.state.is_won:
            if result.won:
                notifications.append(Notification(
                    NotificationKind.WIN,
                    message=f"You won! Final score: {self.state.score}",
                    data={"score": self.state.score},
                ))
        elif not has_any_legal_move(self.state):
            hint = self.compute_hint()
            notifications.append(Notification(
                NotificationKind.STUCK,
                message=f"No more moves available!\n{hint}",
                data={"hint": hint},
            ))

        turn = TurnResult(
            success=True,
            loop_state=self.loop_state,
            changes=result.state_changes,
            events=result.events,
            awards=self.scoreboard.drain(),
            completed_missions=completed,
            notifications=notifications,
            hint=hint,
        )
        self._notify(notifications)
        return turn

    def _declined(self, error: str, error_code: str = ErrorCode.ILLEGAL_MOVE) -> TurnResult:
        return TurnResult(
            success=False,
            loop_state=self.loop_state if self.state else LoopState.PLAYING,
            error=error,
            error_code=error_code,
        )

    def _notify(self, notifications: list[Notification]):
        for notification in notifications:
            for callback in list(self._subscribers):
                callback(notification)

    def _parse_card(self, card_ref: str | Card) -> Card:
        if isinstance(card_ref, Card):
            return card_ref
        return Card.parse(card_ref)

    def _parse_suit(self, suit: str | Suit | None) -> Suit | None:
        if suit is None or isinstance(suit, Suit):
            return suit
        try:
            return Suit(suit.lower())
        except ValueError:
            raise ValueError(f"Unknown suit {suit!r}") from None

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def loop_state(self) -> LoopState:
        if self.state is None:
            return LoopState.PLAYING
        if self.state.is_won:
            return LoopState.WON
        if not has_any_legal_move(self.state):
            return LoopState.STUCK
        return LoopState.PLAYING

    def compute_hint(self) -> str:
        return compute_hint(self.state, self.rng)

    def has_any_legal_move(self) -> bool:
        return has_any_legal_move(self.state)

    def progress(self) -> int:
        """Percentage of cards on the foundations."""
        return foundation_progress(self.state)

    # =========================================================================
    # Timer
    # =========================================================================

    def tick(self, now: datetime | None = None) -> TickResult:
        """
        Periodic housekeeping.

        Rotates the missions once the day has changed and autosaves
        when the autosave interval has elapsed.
        """
        now = now or self.calendar()
        rotated = self.missions.rotate_missions_if_needed(now)

        saved = False
        if self.state is not None and self.clock() - self._last_save >= self.autosave_seconds:
            self.save()
            saved = True

        remaining = self.missions.time_until_refresh(now)
        return TickResult(
            missions_rotated=rotated,
            saved=saved,
            seconds_until_refresh=int(remaining.total_seconds()),
        )
