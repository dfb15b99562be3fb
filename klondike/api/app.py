"""
FastAPI Application - REST API for game clients.

Endpoints:
    POST   /api/v1/sessions                      Create game session
    GET    /api/v1/sessions                      List active sessions
    GET    /api/v1/sessions/{id}                 Get full game state
    DELETE /api/v1/sessions/{id}                 Save and end session
    POST   /api/v1/sessions/{id}/draw            Draw a card or recycle the waste
    POST   /api/v1/sessions/{id}/foundation      Move a card to a foundation
    POST   /api/v1/sessions/{id}/tableau         Move a card (and its run) to a column
    POST   /api/v1/sessions/{id}/reveal          Flip a face-down column top
    POST   /api/v1/sessions/{id}/new-game        Discard and redeal
    GET    /api/v1/sessions/{id}/hint            Suggested move
    GET    /api/v1/sessions/{id}/missions        Daily missions
    POST   /api/v1/sessions/{id}/tick            Periodic tick (countdown, autosave)
    PUT    /api/v1/sessions/{id}/panels/{panel}  Store panel visibility
    WS     /api/v1/sessions/{id}/ws              WebSocket for notifications

Illegal moves are declined, not errors: HTTP 200 with success=false.

Every endpoint is async but calls the synchronous service directly,
so moves and ticks run one at a time on the event loop.
"""

from dataclasses import asdict
from enum import Enum
from typing import Optional, Union
import json
import logging

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import Settings
from ..persistence.store import profile_store
from ..session import SessionManager
from . import models
from .service import APIService
from .schemas import (
    # Request models
    CreateSessionRequest,
    MoveToFoundationRequest,
    MoveToTableauRequest,
    RevealRequest,
    NewGameRequest,
    TickRequest,
    PanelVisibilityRequest,
    # Response models
    SessionResponse,
    GameStateResponse,
    MoveResponse,
    HintResponse,
    MissionsResponse,
    TickResponse,
    PanelResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)

logger = logging.getLogger(__name__)


def _plain(response) -> dict:
    """Dataclass response as a dict, enums replaced by their values."""
    return asdict(
        response,
        dict_factory=lambda items: {k: (v.value if isinstance(v, Enum) else v) for k, v in items},
    )


def build_service(settings: Settings) -> APIService:
    """APIService whose profiles are JSON files under the data directory."""
    manager = SessionManager(
        store_factory=lambda profile: profile_store(settings.data_dir, profile),
        autosave_seconds=settings.autosave_seconds,
        max_age_hours=settings.snapshot_max_age_hours,
    )
    return APIService(session_manager=manager)


def create_app(service: Optional[APIService] = None, settings: Optional[Settings] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from settings if not provided)
        settings: Optional Settings (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="Klondike Engine API",
        description="""
Klondike solitaire engine with scoring and daily missions.

## Moves

Move endpoints always return a `MoveResponse`. A move that breaks a
placement rule is declined: `success=false`, `error_code=ILLEGAL_MOVE`,
and the game state is unchanged.

## Error Codes

| Code | Description |
|------|-------------|
| `ILLEGAL_MOVE` | Move declined by the rules |
| `INVALID_STATE` | Engine hit a structural impossibility |
| `SESSION_NOT_FOUND` | Session does not exist |
| `VALIDATION_ERROR` | Request is malformed |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or build_service(settings)

    # WebSocket connections
    ws_connections: dict[str, list[WebSocket]] = {}

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def from_service_error(response: models.ErrorResponse) -> JSONResponse:
        status_code = 404 if response.error_code == ErrorCode.SESSION_NOT_FOUND.value else 400
        return make_error_response(
            ErrorCode(response.error_code),
            response.error,
            status_code=status_code,
            details=response.details,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return make_error_response(
            ErrorCode.VALIDATION_ERROR,
            "Invalid request",
            status_code=422,
            details={"errors": json.loads(json.dumps(exc.errors(), default=str))},
        )

    async def broadcast_to_session(session_id: str, message: dict):
        """Broadcast a message to all WebSocket connections for a session."""
        if session_id in ws_connections:
            dead_connections = []
            for ws in ws_connections[session_id]:
                try:
                    await ws.send_json(message)
                except (WebSocketDisconnect, RuntimeError) as e:
                    logger.debug("Dropping WebSocket for %s: %s", session_id, e)
                    dead_connections.append(ws)
            for ws in dead_connections:
                ws_connections[session_id].remove(ws)

    async def move_result(session_id: str, response) -> Union[MoveResponse, JSONResponse]:
        """Convert a move result and push its notifications."""
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)

        move = MoveResponse.model_validate(_plain(response))
        for notification in move.notifications:
            await broadcast_to_session(session_id, {
                "type": models.WSMessageType.NOTIFICATION.value,
                "payload": notification.model_dump(mode="json"),
            })
        return move

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Create a new game session",
    )
    async def create_session(request: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """
        Create a new game session.

        Resumes the profile's saved game if it is less than a day old,
        otherwise deals a fresh one.
        """
        request = request or CreateSessionRequest()
        response = api_service.create_session(
            models.CreateSessionRequest(profile=request.profile, random_seed=request.random_seed)
        )
        return SessionResponse.model_validate(_plain(response))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=GameStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Sessions"],
        summary="Get the full game state",
    )
    async def get_game_state(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        response = api_service.get_game_state(session_id)
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)
        return GameStateResponse.model_validate(_plain(response))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="Save and end a game session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Move Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/draw",
        response_model=MoveResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Moves"],
        summary="Draw a card, or recycle the waste when the deck is empty",
    )
    async def draw(session_id: str) -> Union[MoveResponse, JSONResponse]:
        return await move_result(session_id, api_service.draw(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/foundation",
        response_model=MoveResponse,
        responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Moves"],
        summary="Move the waste top or a column top to its foundation",
    )
    async def move_to_foundation(
        session_id: str,
        request: MoveToFoundationRequest,
    ) -> Union[MoveResponse, JSONResponse]:
        response = api_service.move_to_foundation(
            session_id,
            models.MoveToFoundationRequest(card=request.card, suit=request.suit),
        )
        return await move_result(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/tableau",
        response_model=MoveResponse,
        responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Moves"],
        summary="Move a card and every card above it onto a column",
    )
    async def move_to_tableau(
        session_id: str,
        request: MoveToTableauRequest,
    ) -> Union[MoveResponse, JSONResponse]:
        response = api_service.move_to_tableau(
            session_id,
            models.MoveToTableauRequest(card=request.card, column=request.column),
        )
        return await move_result(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/reveal",
        response_model=MoveResponse,
        responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Moves"],
        summary="Flip a face-down column top",
    )
    async def reveal(session_id: str, request: RevealRequest) -> Union[MoveResponse, JSONResponse]:
        response = api_service.reveal(session_id, models.RevealRequest(column=request.column))
        return await move_result(session_id, response)

    @app.post(
        "/api/v1/sessions/{session_id}/new-game",
        response_model=MoveResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Moves"],
        summary="Discard the current game and deal again",
    )
    async def new_game(
        session_id: str,
        request: Optional[NewGameRequest] = None,
    ) -> Union[MoveResponse, JSONResponse]:
        seed = request.random_seed if request else None
        response = api_service.new_game(session_id, models.NewGameRequest(random_seed=seed))
        return await move_result(session_id, response)

    # =========================================================================
    # Query Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/hint",
        response_model=HintResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Suggest a move",
    )
    async def get_hint(session_id: str) -> Union[HintResponse, JSONResponse]:
        response = api_service.get_hint(session_id)
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)
        return HintResponse.model_validate(_plain(response))

    @app.get(
        "/api/v1/sessions/{session_id}/missions",
        response_model=MissionsResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Get the daily missions",
    )
    async def get_missions(session_id: str) -> Union[MissionsResponse, JSONResponse]:
        response = api_service.get_missions(session_id)
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)
        return MissionsResponse.model_validate(_plain(response))

    @app.post(
        "/api/v1/sessions/{session_id}/tick",
        response_model=TickResponse,
        responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Periodic tick: mission rollover and autosave",
    )
    async def tick(
        session_id: str,
        request: Optional[TickRequest] = None,
    ) -> Union[TickResponse, JSONResponse]:
        response = api_service.tick(
            session_id,
            models.TickRequest(now=request.now if request else None),
        )
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)
        return TickResponse.model_validate(_plain(response))

    @app.put(
        "/api/v1/sessions/{session_id}/panels/{panel}",
        response_model=PanelResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Game"],
        summary="Store whether a UI panel is visible",
    )
    async def set_panel_visibility(
        session_id: str,
        panel: str,
        request: PanelVisibilityRequest,
    ) -> Union[PanelResponse, JSONResponse]:
        response = api_service.set_panel_visibility(
            session_id,
            panel,
            models.PanelVisibilityRequest(visible=request.visible),
        )
        if isinstance(response, models.ErrorResponse):
            return from_service_error(response)
        return PanelResponse.model_validate(_plain(response))

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/api/v1/sessions/{session_id}/ws")
    async def websocket_endpoint(websocket: WebSocket, session_id: str):
        """
        WebSocket for real-time updates.

        Messages from server:
        - connected: Current game state on connect
        - notification: render, win or stuck (with hint)
        - error: Error occurred

        Messages from client:
        - ping: Keep-alive
        """
        await websocket.accept()

        response = api_service.get_game_state(session_id)
        if isinstance(response, models.ErrorResponse):
            await websocket.send_json({
                "type": models.WSMessageType.ERROR.value,
                "payload": {"message": response.error, "error_code": response.error_code},
            })
            await websocket.close()
            return

        ws_connections.setdefault(session_id, []).append(websocket)

        try:
            await websocket.send_json({
                "type": models.WSMessageType.CONNECTED.value,
                "payload": GameStateResponse.model_validate(_plain(response)).model_dump(mode="json"),
            })

            # Listen for messages
            while True:
                data = await websocket.receive_text()
                try:
                    message = json.loads(data)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": models.WSMessageType.ERROR.value,
                        "payload": {"message": "Invalid JSON"},
                    })
                    continue
                if isinstance(message, dict) and message.get("type") == models.WSMessageType.PING.value:
                    await websocket.send_json({"type": models.WSMessageType.PONG.value})

        except WebSocketDisconnect:
            logger.debug("WebSocket for %s disconnected", session_id)
        finally:
            if websocket in ws_connections.get(session_id, []):
                ws_connections[session_id].remove(websocket)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="klondike-engine",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Klondike Engine API",
            "version": __version__,
            "env": settings.env,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app
