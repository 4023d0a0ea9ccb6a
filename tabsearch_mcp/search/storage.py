"""Key-value persistence for search history and snippets."""

import contextlib
import fcntl
import json
import os
import re
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional


class StorageError(Exception):
    """Raised when persisted data cannot be read back."""


class KeyValueStore(ABC):
    """Port for the host's key-value persistence."""

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Get the JSON-compatible value for key, or None if unset"""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store a JSON-compatible value under key"""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key if present"""
        pass


class MemoryStore(KeyValueStore):
    """Process-local store, used when nothing should touch disk."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        # Round-trip through JSON so stored values never alias caller objects
        self._data[key] = json.loads(json.dumps(value))

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(KeyValueStore):
    """Stores each key as <key>.json in a directory.

    Attributes:
        directory: Directory holding the JSON files
    """

    LOCK_FILE = ".store.lock"

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    @contextlib.contextmanager
    def _lock(self):
        """File lock so concurrent writers do not clobber each other."""
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.directory / self.LOCK_FILE, "a") as f:
            try:
                fcntl.flock(f, fcntl.LOCK_EX)
                yield
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def get(self, key: str) -> Optional[Any]:
        """Load a value.

        Raises:
            StorageError: If the file exists but is not valid JSON
        """
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageError(f"Corrupt data in {path}: {e}") from e

    def set(self, key: str, value: Any) -> None:
        """Write a value atomically (temp file + rename)."""
        path = self._path(key)
        with self._lock():
            fd, temp_path = tempfile.mkstemp(suffix=".tmp", dir=self.directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(value, f, indent=2)
                os.replace(temp_path, path)
            except Exception:
                if os.path.exists(temp_path):
                    os.unlink(temp_path)
                raise

    def delete(self, key: str) -> None:
        path = self._path(key)
        with self._lock():
            if path.exists():
                path.unlink()
