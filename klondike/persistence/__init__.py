"""
Persistence - Key/value stores and the gateway that snapshots games.
"""

from .store import KeyValueStore, MemoryStore, JsonFileStore, profile_store
from .gateway import (
    PersistenceGateway,
    PersistenceCorrupt,
    StaleSnapshot,
    encode_snapshot,
    decode_snapshot,
    HIGH_SCORE_KEY,
    GAME_STATE_KEY,
    MISSIONS_KEY,
    MISSIONS_UPDATED_KEY,
)

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "profile_store",
    "PersistenceGateway",
    "PersistenceCorrupt",
    "StaleSnapshot",
    "encode_snapshot",
    "decode_snapshot",
    "HIGH_SCORE_KEY",
    "GAME_STATE_KEY",
    "MISSIONS_KEY",
    "MISSIONS_UPDATED_KEY",
]
