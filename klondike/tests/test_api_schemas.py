"""
Tests for API Pydantic schemas.

Validates that:
- Request models enforce their bounds
- Response models serialize enums as plain strings
- Face-down cards validate without an identity
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    CardInfo,
    CreateSessionRequest,
    ErrorCode,
    ErrorResponse,
    MoveResponse,
    MoveToTableauRequest,
    NotificationInfo,
    NotificationKind,
    RevealRequest,
    SessionResponse,
    SessionStatus,
)


class TestPydanticSchemas:
    """Tests for Pydantic schema validation."""

    def test_session_response_schema(self):
        """SessionResponse serializes its status as a string."""
        response = SessionResponse(
            session_id="session-123",
            profile="default",
            status=SessionStatus.ACTIVE,
            score=12,
            high_score=40,
        )

        data = response.model_dump(mode="json")
        assert data["status"] == "active"
        assert data["restored"] is False
        assert data["api_version"] == "v1"

    def test_error_response_schema(self):
        response = ErrorResponse(
            error="Session not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
            details={"session_id": "abc"},
        )

        data = response.model_dump(mode="json")
        assert data["error_code"] == "SESSION_NOT_FOUND"
        assert data["details"] == {"session_id": "abc"}

    def test_error_code_values(self):
        assert {c.value for c in ErrorCode} == {
            "ILLEGAL_MOVE",
            "INVALID_STATE",
            "SESSION_NOT_FOUND",
            "VALIDATION_ERROR",
            "INTERNAL_ERROR",
        }

    def test_face_down_card(self):
        card = CardInfo(face_up=False)
        assert card.suit is None
        assert card.ref is None

    def test_card_rank_bounds(self):
        with pytest.raises(ValidationError):
            CardInfo(face_up=True, rank=14)

    def test_declined_move_response(self):
        """A declined move carries its engine error code as-is."""
        response = MoveResponse(
            session_id="s",
            success=False,
            status=SessionStatus.ACTIVE,
            error="7 of clubs cannot go on column 1",
            error_code="ILLEGAL_MOVE",
        )

        data = response.model_dump(mode="json")
        assert data["success"] is False
        assert data["points"] == 0
        assert data["game_state"] is None

    def test_notification_kind(self):
        notification = NotificationInfo(kind="stuck", message="No more moves available!")
        assert notification.kind == NotificationKind.STUCK


class TestRequestValidation:
    """Tests for request bounds."""

    @pytest.mark.parametrize("column", [-1, 7])
    def test_tableau_column_bounds(self, column):
        with pytest.raises(ValidationError):
            MoveToTableauRequest(card="KS", column=column)

    def test_tableau_card_required(self):
        with pytest.raises(ValidationError):
            MoveToTableauRequest(column=0)

    def test_reveal_column_bounds(self):
        with pytest.raises(ValidationError):
            RevealRequest(column=7)
        assert RevealRequest(column=6).column == 6

    def test_create_session_defaults(self):
        request = CreateSessionRequest()
        assert request.profile == "default"
        assert request.random_seed is None

    def test_empty_profile_rejected(self):
        with pytest.raises(ValidationError):
            CreateSessionRequest(profile="")
