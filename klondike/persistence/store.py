"""
Key/Value Stores - Where persisted blobs live.

Values are always strings, keyed by fixed string keys.

Design decisions:
- Simple file-based storage, one JSON object per profile
- No database required
- In-memory store for tests and throwaway sessions
"""

from __future__ import annotations
import json
from abc import ABC, abstractmethod
from pathlib import Path


class KeyValueStore(ABC):
    """String key/value store used by the persistence gateway."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Value for key, or None when absent."""

    @abstractmethod
    def set(self, key: str, value: str):
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str):
        """Drop key. Missing keys are ignored."""

    @abstractmethod
    def keys(self) -> list[str]:
        """All stored keys."""


class MemoryStore(KeyValueStore):
    """Dict-backed store; nothing survives the process."""

    def __init__(self, data: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileStore(KeyValueStore):
    """
    File-backed store: the whole key space in one JSON object.

    Usage:
        store = JsonFileStore("~/.klondike/default.json")
        store.set("solitaireHighScore", "120")

    Every write rewrites the file. An unreadable file is treated
    as empty and replaced on the next write.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str):
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str):
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

    def keys(self) -> list[str]:
        return list(self._read())

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, data: dict[str, str]):
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w") as f:
            json.dump(data, f, indent=2)
        tmp_path.replace(self.path)


def profile_store(data_dir: str | Path, profile: str) -> JsonFileStore:
    """The file store for one named profile under data_dir."""
    return JsonFileStore(Path(data_dir).expanduser() / f"{profile}.json")
