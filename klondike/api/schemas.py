"""
Pydantic Schemas for API - Proper request/response models for OpenAPI.

These models define the exact contract between game clients and the engine.
All responses include explicit types for OpenAPI schema generation.

Error Codes:
- ILLEGAL_MOVE: The move breaks a placement rule; it was declined, nothing changed
- INVALID_STATE: The engine hit a structural impossibility; nothing changed
- SESSION_NOT_FOUND: Session does not exist or has ended
- VALIDATION_ERROR: Request body or parameters are malformed
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    STUCK = "stuck"
    WON = "won"
    ENDED = "ended"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    INVALID_STATE = "INVALID_STATE"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class NotificationKind(str, Enum):
    """Signals for the presentation layer."""
    RENDER = "render"
    WIN = "win"
    STUCK = "stuck"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display. Face-down cards carry no identity."""
    face_up: bool
    suit: Optional[str] = None
    rank: Optional[int] = Field(None, ge=1, le=13)
    display_value: Optional[str] = Field(None, description="A, 2-10, J, Q, K")
    ref: Optional[str] = Field(None, description="Compact reference such as AH or 10S")
    color: Optional[str] = None
    symbol: Optional[str] = None

    model_config = {"from_attributes": True}


class ZoneInfo(BaseModel):
    """Zone information for display."""
    zone_id: str
    zone_type: str = Field(description="stock, waste, foundation, tableau")
    card_count: int = 0
    cards: list[CardInfo] = Field(default_factory=list)
    top_card: Optional[CardInfo] = None

    model_config = {"from_attributes": True}


class AwardInfo(BaseModel):
    """Points granted by a move."""
    amount: int
    reason: str

    model_config = {"from_attributes": True}


class MissionInfo(BaseModel):
    """A daily mission and its progress."""
    mission_id: str
    title: str
    description: str
    mission_type: str = Field(
        description="foundation_move, reveal_card, king_move, tableau_move, win_game"
    )
    target: int
    progress: int
    reward: int
    completed: bool = False

    model_config = {"from_attributes": True}


class NotificationInfo(BaseModel):
    """A signal for the presentation layer."""
    kind: NotificationKind
    message: str = ""
    data: dict[str, Any] = Field(default_factory=dict)

    model_config = {"from_attributes": True}


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    profile: str = Field("default", min_length=1, max_length=64, description="Player profile")
    random_seed: Optional[int] = Field(None, description="Seed for a reproducible deal")


class MoveToFoundationRequest(BaseModel):
    """Request to move a card onto a foundation."""
    card: str = Field(..., description="Card reference such as AH, 10S, KD")
    suit: Optional[str] = Field(None, description="Target foundation; defaults to the card's suit")


class MoveToTableauRequest(BaseModel):
    """Request to move a card, and every card above it, onto a column."""
    card: str = Field(..., description="Card reference such as QH")
    column: int = Field(..., ge=0, le=6, description="Target column, 0-based")


class RevealRequest(BaseModel):
    """Request to flip a face-down column top."""
    column: int = Field(..., ge=0, le=6)


class NewGameRequest(BaseModel):
    """Request to discard the current game and deal again."""
    random_seed: Optional[int] = None


class TickRequest(BaseModel):
    """Periodic tick."""
    now: Optional[str] = Field(None, description="ISO-8601 local time; defaults to the server clock")


class PanelVisibilityRequest(BaseModel):
    """Request to store a UI panel's visibility."""
    visible: bool


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    profile: str
    status: SessionStatus
    restored: bool = Field(False, description="True if a saved game was resumed")
    score: int = 0
    high_score: int = 0
    created_at: float = 0.0
    api_version: str = "v1"

    model_config = {"from_attributes": True}


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: SessionStatus
    game_id: str

    stock: ZoneInfo
    waste: ZoneInfo
    foundations: list[ZoneInfo] = Field(default_factory=list)
    tableau: list[ZoneInfo] = Field(default_factory=list)

    score: int = 0
    high_score: int = 0
    progress: int = Field(0, ge=0, le=100, description="Percent of cards on foundations")
    has_legal_move: bool = True
    timestamp: float = 0.0

    api_version: str = "v1"

    model_config = {"from_attributes": True}


class MoveResponse(BaseModel):
    """
    Response from a move request.

    Illegal moves are not HTTP errors: success is false, error_code is
    ILLEGAL_MOVE, and game_state is unchanged.
    """
    session_id: str
    success: bool
    status: SessionStatus

    error: Optional[str] = None
    error_code: Optional[str] = Field(None, description="ILLEGAL_MOVE or INVALID_STATE")

    points: int = 0
    awards: list[AwardInfo] = Field(default_factory=list)
    events: list[str] = Field(default_factory=list)
    changes: list[str] = Field(default_factory=list)
    completed_missions: list[str] = Field(default_factory=list)
    notifications: list[NotificationInfo] = Field(default_factory=list)
    hint: Optional[str] = Field(None, description="Set when no moves remain")

    game_state: Optional[GameStateResponse] = None

    api_version: str = "v1"

    model_config = {"from_attributes": True}


class HintResponse(BaseModel):
    """A suggested move."""
    session_id: str
    hint: str
    has_legal_move: bool
    api_version: str = "v1"


class MissionsResponse(BaseModel):
    """The active daily missions."""
    session_id: str
    missions: list[MissionInfo] = Field(default_factory=list)
    last_update: Optional[str] = Field(None, description="ISO-8601 time of the last rotation")
    seconds_until_refresh: int = Field(0, description="Seconds to the next local midnight")
    api_version: str = "v1"


class TickResponse(BaseModel):
    """Result of a periodic tick."""
    session_id: str
    missions_rotated: bool = False
    saved: bool = False
    seconds_until_refresh: int = 0
    api_version: str = "v1"


class PanelResponse(BaseModel):
    """Stored panel visibility."""
    session_id: str
    panel: str
    visible: bool
    panels: dict[str, bool] = Field(default_factory=dict)
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
