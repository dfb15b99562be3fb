"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Client starts a session for a player profile
2. The profile's store is opened; the saved game is restored or a fresh
   deal is made, and the daily missions are loaded or rotated
3. During the game every move goes through the session's GameLoop
4. Session ends -> game saved, session removed from memory

PERSISTENCE RULES:
- One key/value store per profile, created by the store factory
- The game snapshot, high score and missions outlive the session
- Sessions themselves are in-memory only
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable
import logging
import random
import time
import uuid

from ..persistence.store import KeyValueStore, MemoryStore
from ..persistence.gateway import PersistenceGateway, DEFAULT_MAX_AGE_HOURS
from .game_loop import GameLoop, DEFAULT_AUTOSAVE_SECONDS

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"
    ENDED = "ended"
    ABANDONED = "abandoned"


@dataclass
class Session:
    """
    A live game for one profile.

    Contains:
    - The game loop (engine facade, scoring, missions)
    - The persistence gateway for the profile
    - Session metadata
    """
    session_id: str
    profile: str
    loop: GameLoop
    created_at: float

    state: SessionState = SessionState.ACTIVE
    restored: bool = False
    last_activity: float = 0.0

    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def gateway(self) -> PersistenceGateway:
        return self.loop.gateway

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state == SessionState.ACTIVE

    def touch(self):
        self.last_activity = time.time()


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions for player profiles
    - Track active sessions
    - Save and clean up ended or idle sessions
    """

    def __init__(
        self,
        store_factory: Callable[[str], KeyValueStore] | None = None,
        autosave_seconds: float = DEFAULT_AUTOSAVE_SECONDS,
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
    ):
        self._sessions: dict[str, Session] = {}
        self._store_factory = store_factory or self._memory_store
        self._memory_stores: dict[str, MemoryStore] = {}
        self.autosave_seconds = autosave_seconds
        self.max_age_hours = max_age_hours

    def _memory_store(self, profile: str) -> KeyValueStore:
        # One store per profile, kept for the manager's lifetime
        return self._memory_stores.setdefault(profile, MemoryStore())

    def create_session(
        self,
        profile: str = "default",
        random_seed: int | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            profile: Player profile whose store holds the saved game
            random_seed: Seed for a deterministic deal, hints and missions

        Returns:
            New Session with a restored or freshly dealt game
        """
        session_id = str(uuid.uuid4())

        gateway = PersistenceGateway(
            store=self._store_factory(profile),
            max_age_hours=self.max_age_hours,
        )
        loop = GameLoop(
            gateway=gateway,
            rng=random.Random(random_seed),
            autosave_seconds=self.autosave_seconds,
        )
        restored = loop.start(random_seed=random_seed)

        now = time.time()
        session = Session(
            session_id=session_id,
            profile=profile,
            loop=loop,
            created_at=now,
            restored=restored,
            last_activity=now,
        )

        self._sessions[session_id] = session
        logger.info(
            "Created session %s for profile %s (%s)",
            session_id,
            profile,
            "restored" if restored else "new deal",
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session: save the game and drop it from memory.

        Returns False if the session was unknown.
        """
        session = self._sessions.pop(session_id, None)
        if not session:
            return False

        session.loop.save()
        session.state = SessionState.ENDED if reason == "completed" else SessionState.ABANDONED
        logger.info("Ended session %s (%s)", session_id, reason)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_idle_seconds: int = 3600) -> list[str]:
        """
        End sessions idle for longer than max_idle_seconds.

        Returns the IDs that were ended.
        """
        current_time = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if current_time - session.last_activity > max_idle_seconds
        ]

        for session_id in stale:
            self.end_session(session_id, reason="stale")
        return stale
