"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to game loop calls
2. Manages sessions
3. Formats responses for clients

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime

from .models import (
    # Requests
    CreateSessionRequest,
    MoveToFoundationRequest,
    MoveToTableauRequest,
    RevealRequest,
    NewGameRequest,
    TickRequest,
    PanelVisibilityRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    MoveResponse,
    HintResponse,
    MissionsResponse,
    TickResponse,
    PanelResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    ZoneInfo,
    AwardInfo,
    MissionInfo,
    NotificationInfo,
    # Enums
    SessionStatus,
    APIErrorCode,
)
from ..engine_core.cards import Card
from ..engine_core.state import Zone
from ..engine_core.action_generator import has_any_legal_move, foundation_progress
from ..progression.missions import parse_time
from ..session import SessionManager, Session, LoopState, TurnResult, Notification


@dataclass
class APIService:
    """
    Main API service for game clients.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session(CreateSessionRequest())

        # Play
        move = service.move_to_tableau(session_id, MoveToTableauRequest("QH", 3))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        Restores the profile's saved game when there is a usable one.
        """
        session = self.session_manager.create_session(
            profile=request.profile,
            random_seed=request.random_seed,
        )
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        """
        Get session status.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._session_to_response(session)

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        """
        Get current game state.
        """
        session = self.session_manager.get_session(session_id)
        if not session:
            return self._not_found(session_id)
        return self._build_game_state(session)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a game session. The game is saved first.
        """
        return self.session_manager.end_session(session_id, reason)

    def list_sessions(self) -> list[str]:
        """
        List active session IDs.
        """
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Moves
    # =========================================================================

    def draw(self, session_id: str) -> MoveResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        return self._turn_to_response(session, session.loop.draw_card())

    def move_to_foundation(
        self,
        session_id: str,
        request: MoveToFoundationRequest,
    ) -> MoveResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        result = session.loop.move_to_foundation(request.card, request.suit)
        return self._turn_to_response(session, result)

    def move_to_tableau(
        self,
        session_id: str,
        request: MoveToTableauRequest,
    ) -> MoveResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        result = session.loop.move_to_tableau(request.card, request.column)
        return self._turn_to_response(session, result)

    def reveal(self, session_id: str, request: RevealRequest) -> MoveResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        return self._turn_to_response(session, session.loop.reveal_top(request.column))

    def new_game(self, session_id: str, request: NewGameRequest | None = None) -> MoveResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        seed = request.random_seed if request else None
        return self._turn_to_response(session, session.loop.new_game(random_seed=seed))

    # =========================================================================
    # Queries
    # =========================================================================

    def get_hint(self, session_id: str) -> HintResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)
        return HintResponse(
            session_id=session_id,
            hint=session.loop.compute_hint(),
            has_legal_move=session.loop.has_any_legal_move(),
        )

    def get_missions(self, session_id: str, now: datetime | None = None) -> MissionsResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)

        board = session.loop.missions
        now = now or session.loop.calendar()
        return MissionsResponse(
            session_id=session_id,
            missions=[
                MissionInfo(
                    mission_id=m.id,
                    title=m.title,
                    description=m.description,
                    mission_type=m.type.value,
                    target=m.target,
                    progress=m.progress,
                    reward=m.reward,
                    completed=m.is_complete,
                )
                for m in board.missions
            ],
            last_update=board.last_update.isoformat() if board.last_update else None,
            seconds_until_refresh=int(board.time_until_refresh(now).total_seconds()),
        )

    # =========================================================================
    # Housekeeping
    # =========================================================================

    def tick(self, session_id: str, request: TickRequest | None = None) -> TickResponse | ErrorResponse:
        """
        Run the periodic tick for a session.
        """
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)

        now = None
        if request and request.now:
            try:
                now = parse_time(request.now)
            except ValueError:
                return ErrorResponse(
                    error=f"Not an ISO-8601 time: {request.now}",
                    error_code=APIErrorCode.VALIDATION_ERROR,
                )

        result = session.loop.tick(now)
        return TickResponse(
            session_id=session_id,
            missions_rotated=result.missions_rotated,
            saved=result.saved,
            seconds_until_refresh=result.seconds_until_refresh,
        )

    def set_panel_visibility(
        self,
        session_id: str,
        panel: str,
        request: PanelVisibilityRequest,
    ) -> PanelResponse | ErrorResponse:
        session = self._active(session_id)
        if not session:
            return self._not_found(session_id)

        session.gateway.save_panel_visible(panel, request.visible)
        return PanelResponse(
            session_id=session_id,
            panel=panel,
            visible=request.visible,
            panels=session.gateway.panel_states(),
        )

    # =========================================================================
    # Helper methods
    # =========================================================================

    def _active(self, session_id: str) -> Session | None:
        session = self.session_manager.get_session(session_id)
        if session:
            session.touch()
        return session

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error="Session not found",
            error_code=APIErrorCode.SESSION_NOT_FOUND,
            details={"session_id": session_id},
        )

    def _session_to_response(self, session: Session) -> SessionResponse:
        """Convert Session to SessionResponse."""
        state = session.loop.state
        return SessionResponse(
            session_id=session.session_id,
            profile=session.profile,
            status=self._status(session),
            restored=session.restored,
            score=state.score if state else 0,
            high_score=state.high_score if state else 0,
            created_at=session.created_at,
        )

    def _status(self, session: Session) -> SessionStatus:
        if not session.is_active():
            return SessionStatus.ENDED
        return self._loop_state_to_status(session.loop.loop_state)

    def _loop_state_to_status(self, loop_state: LoopState) -> SessionStatus:
        """Convert loop state to API status."""
        mapping = {
            LoopState.PLAYING: SessionStatus.ACTIVE,
            LoopState.STUCK: SessionStatus.STUCK,
            LoopState.WON: SessionStatus.WON,
        }
        return mapping.get(loop_state, SessionStatus.ACTIVE)

    def _turn_to_response(self, session: Session, result: TurnResult) -> MoveResponse:
        """Convert TurnResult to MoveResponse."""
        return MoveResponse(
            session_id=session.session_id,
            success=result.success,
            status=self._loop_state_to_status(result.loop_state),
            error=result.error,
            error_code=result.error_code,
            points=result.points,
            awards=[AwardInfo(amount=a.amount, reason=a.reason) for a in result.awards],
            events=[e.value for e in result.events],
            changes=result.changes,
            completed_missions=result.completed_missions,
            notifications=[self._notification_info(n) for n in result.notifications],
            hint=result.hint,
            game_state=self._build_game_state(session),
        )

    def _notification_info(self, notification: Notification) -> NotificationInfo:
        return NotificationInfo(
            kind=notification.kind.value,
            message=notification.message,
            data=notification.data,
        )

    def _build_game_state(self, session: Session) -> GameStateResponse:
        """Build complete game state response."""
        state = session.loop.state
        return GameStateResponse(
            session_id=session.session_id,
            status=self._status(session),
            game_id=state.game_id,
            stock=self._zone_info(state.stock),
            waste=self._zone_info(state.waste),
            foundations=[self._zone_info(z) for z in state.foundations.values()],
            tableau=[self._zone_info(z) for z in state.tableau],
            score=state.score,
            high_score=state.high_score,
            progress=foundation_progress(state),
            has_legal_move=has_any_legal_move(state),
            timestamp=state.timestamp,
        )

    def _zone_info(self, zone: Zone) -> ZoneInfo:
        cards = [self._card_info(c) for c in zone.cards]
        return ZoneInfo(
            zone_id=zone.name,
            zone_type=zone.kind.value,
            card_count=zone.count,
            cards=cards,
            top_card=cards[-1] if cards else None,
        )

    def _card_info(self, card: Card) -> CardInfo:
        if not card.face_up:
            return CardInfo(face_up=False)
        return CardInfo(
            face_up=True,
            suit=card.suit.value,
            rank=card.rank,
            display_value=card.display_value,
            ref=card.ref,
            color=card.color,
            symbol=card.suit.symbol,
        )
