"""
API Module - Client interface.

Exposes the engine via REST API and WebSocket.
A client:
1. Creates a game session for a profile
2. Sends move requests
3. Receives state updates and notifications
4. Ticks periodically for the mission countdown and autosave

Games, high scores and missions persist per profile.
"""

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
    MissionInfo,
    NotificationInfo,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "MoveToFoundationRequest",
    "MoveToTableauRequest",
    "RevealRequest",
    "NewGameRequest",
    "TickRequest",
    "PanelVisibilityRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "MoveResponse",
    "HintResponse",
    "MissionsResponse",
    "TickResponse",
    "PanelResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "ZoneInfo",
    "MissionInfo",
    "NotificationInfo",
    # Service
    "APIService",
    "create_app",
]
