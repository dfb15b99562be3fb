"""
API Models - Request and response schemas for game clients.

These models define the contract between a client (web page, mobile
app, terminal) and the engine. All models are serializable to JSON.

Design principles:
- Client-friendly (face-down cards carry no identity)
- Self-describing (includes metadata for UI rendering)
- Versioned (API version in responses)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# =============================================================================
# Enums for API
# =============================================================================

class APIVersion(Enum):
    V1 = "v1"


class SessionStatus(Enum):
    ACTIVE = "active"
    STUCK = "stuck"
    WON = "won"
    ENDED = "ended"


class APIErrorCode:
    """Error codes added by the API layer on top of the engine's."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models (used in both requests and responses)
# =============================================================================

@dataclass
class CardInfo:
    """Card information for display. Identity is hidden while face down."""
    face_up: bool
    suit: str | None = None
    rank: int | None = None
    display_value: str | None = None
    ref: str | None = None
    color: str | None = None
    symbol: str | None = None


@dataclass
class ZoneInfo:
    """Zone information for display."""
    zone_id: str
    zone_type: str  # "stock", "waste", "foundation", "tableau"
    card_count: int = 0
    cards: list[CardInfo] = field(default_factory=list)
    top_card: CardInfo | None = None


@dataclass
class AwardInfo:
    """Points granted, with the reason shown to the player."""
    amount: int
    reason: str


@dataclass
class MissionInfo:
    """A daily mission and its progress."""
    mission_id: str
    title: str
    description: str
    mission_type: str
    target: int
    progress: int
    reward: int
    completed: bool = False


@dataclass
class NotificationInfo:
    """A signal for the presentation layer."""
    kind: str  # "render", "win", "stuck"
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Request Models
# =============================================================================

@dataclass
class CreateSessionRequest:
    """
    Request to create a new game session.

    POST /api/v1/sessions
    """
    profile: str = "default"
    random_seed: int | None = None


@dataclass
class MoveToFoundationRequest:
    """
    Request to move a card onto a foundation.

    POST /api/v1/sessions/{session_id}/foundation
    """
    card: str  # e.g. "AH", "10S"
    suit: str | None = None  # Target foundation; defaults to the card's suit


@dataclass
class MoveToTableauRequest:
    """
    Request to move a card (and everything above it) onto a column.

    POST /api/v1/sessions/{session_id}/tableau
    """
    card: str
    column: int  # 0-based


@dataclass
class RevealRequest:
    """
    Request to flip a face-down column top.

    POST /api/v1/sessions/{session_id}/reveal
    """
    column: int


@dataclass
class NewGameRequest:
    """
    Request to discard the current game and deal again.

    POST /api/v1/sessions/{session_id}/new-game
    """
    random_seed: int | None = None


@dataclass
class TickRequest:
    """
    Periodic tick.

    POST /api/v1/sessions/{session_id}/tick
    """
    now: str | None = None  # ISO-8601 local time; defaults to the clock


@dataclass
class PanelVisibilityRequest:
    """
    Request to store a UI panel's visibility.

    PUT /api/v1/sessions/{session_id}/panels/{panel}
    """
    visible: bool


# =============================================================================
# Response Models
# =============================================================================

@dataclass
class ErrorResponse:
    """
    Error response.

    Returned for any 4xx or 5xx status.
    """
    error: str
    error_code: str
    details: dict[str, Any] | None = None
    api_version: str = APIVersion.V1.value


@dataclass
class SessionResponse:
    """
    Response containing session information.

    Returned when creating or querying a session.
    """
    session_id: str
    profile: str
    status: SessionStatus
    restored: bool = False
    score: int = 0
    high_score: int = 0
    created_at: float = 0.0
    api_version: str = APIVersion.V1.value


@dataclass
class GameStateResponse:
    """
    Complete game state for display.

    Returned after state changes.
    """
    session_id: str
    status: SessionStatus
    game_id: str

    stock: ZoneInfo
    waste: ZoneInfo
    foundations: list[ZoneInfo] = field(default_factory=list)
    tableau: list[ZoneInfo] = field(default_factory=list)

    # Game progress
    score: int = 0
    high_score: int = 0
    progress: int = 0  # Percent of cards on foundations
    has_legal_move: bool = True
    timestamp: float = 0.0

    api_version: str = APIVersion.V1.value


@dataclass
class MoveResponse:
    """
    Response from a move request.

    A declined move has success=False, an error code, and the
    unchanged game state.
    """
    session_id: str
    success: bool
    status: SessionStatus

    error: str | None = None
    error_code: str | None = None

    # What the move did
    points: int = 0
    awards: list[AwardInfo] = field(default_factory=list)
    events: list[str] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    completed_missions: list[str] = field(default_factory=list)
    notifications: list[NotificationInfo] = field(default_factory=list)
    hint: str | None = None

    game_state: GameStateResponse | None = None

    api_version: str = APIVersion.V1.value


@dataclass
class HintResponse:
    session_id: str
    hint: str
    has_legal_move: bool
    api_version: str = APIVersion.V1.value


@dataclass
class MissionsResponse:
    """
    The active daily missions.

    seconds_until_refresh counts down to the next local midnight.
    """
    session_id: str
    missions: list[MissionInfo] = field(default_factory=list)
    last_update: str | None = None
    seconds_until_refresh: int = 0
    api_version: str = APIVersion.V1.value


@dataclass
class TickResponse:
    session_id: str
    missions_rotated: bool = False
    saved: bool = False
    seconds_until_refresh: int = 0
    api_version: str = APIVersion.V1.value


@dataclass
class PanelResponse:
    session_id: str
    panel: str
    visible: bool
    panels: dict[str, bool] = field(default_factory=dict)
    api_version: str = APIVersion.V1.value


# =============================================================================
# WebSocket Models (for real-time updates)
# =============================================================================

@dataclass
class WSMessage:
    """
    WebSocket message wrapper.

    All WS messages have a type and payload.
    """
    message_type: str
    payload: dict[str, Any]
    session_id: str | None = None
    timestamp: float = 0.0


class WSMessageType(Enum):
    # Client -> Server
    PING = "ping"

    # Server -> Client
    CONNECTED = "connected"
    NOTIFICATION = "notification"
    ERROR = "error"
    PONG = "pong"
