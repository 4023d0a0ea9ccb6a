"""Recent-query history and named snippet presets."""

import logging
import threading
from typing import Optional

from .models import HistoryEntry, SearchFilters, SearchSnippet
from .storage import KeyValueStore, MemoryStore, StorageError

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 10


class SearchHistory:
    """Most-recent-first query log, unique by query and capped.

    Loaded once from the store at construction. Unreadable stored data is
    discarded and the history starts empty.
    """

    STORAGE_KEY = "searchHistory"

    def __init__(self, store: KeyValueStore | None = None, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be positive, got {limit}")
        self.store = store or MemoryStore()
        self.limit = limit
        self._lock = threading.Lock()
        self._entries = self._load()

    def _load(self) -> list[HistoryEntry]:
        try:
            data = self.store.get(self.STORAGE_KEY)
        except (StorageError, OSError) as e:
            logger.warning(f"Failed to load search history: {e}. Starting empty.")
            return []
        if data is None:
            return []

        try:
            entries = [HistoryEntry.from_dict(d) for d in data]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed search history: {e}")
            return []

        # Re-apply the dedup/cap policy in case the stored list was edited by hand
        seen: set[str] = set()
        unique = []
        for entry in entries:
            if entry.query not in seen:
                seen.add(entry.query)
                unique.append(entry)
        return unique[:self.limit]

    def _persist(self) -> None:
        try:
            self.store.set(self.STORAGE_KEY, [e.to_dict() for e in self._entries])
        except (StorageError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist search history: {e}")

    def record_query(self, entry: HistoryEntry) -> None:
        """Add an entry at the front, evicting any older entry with the same query."""
        with self._lock:
            remaining = [e for e in self._entries if e.query != entry.query]
            self._entries = [entry, *remaining][:self.limit]
            self._persist()

    def list_history(self) -> list[HistoryEntry]:
        """Entries, newest first."""
        with self._lock:
            return list(self._entries)


class SnippetStore:
    """Named query + filters presets. Saving an existing name overwrites it."""

    STORAGE_KEY = "searchSnippets"

    def __init__(self, store: KeyValueStore | None = None):
        self.store = store or MemoryStore()
        self._lock = threading.Lock()
        self._snippets = self._load()

    def _load(self) -> dict[str, SearchSnippet]:
        try:
            data = self.store.get(self.STORAGE_KEY)
        except (StorageError, OSError) as e:
            logger.warning(f"Failed to load search snippets: {e}. Starting empty.")
            return {}
        if not data:
            return {}

        try:
            return {name: SearchSnippet.from_dict(name, d) for name, d in data.items()}
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Discarding malformed search snippets: {e}")
            return {}

    def _persist(self) -> None:
        try:
            self.store.set(
                self.STORAGE_KEY,
                {name: s.to_dict() for name, s in self._snippets.items()},
            )
        except (StorageError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist search snippets: {e}")

    def save_snippet(
        self, name: str, query: str, filters: SearchFilters | None = None
    ) -> SearchSnippet:
        """Create or replace a snippet.

        Raises:
            ValueError: If name or query is blank
        """
        if not name or not name.strip():
            raise ValueError("Snippet name must not be empty")
        if not query or not query.strip():
            raise ValueError("Snippet query must not be empty")

        snippet = SearchSnippet(name=name, query=query, filters=filters or SearchFilters())
        with self._lock:
            self._snippets[name] = snippet
            self._persist()
        return snippet

    def load_snippet(self, name: str) -> Optional[SearchSnippet]:
        """Get a snippet by name, None if not found."""
        with self._lock:
            return self._snippets.get(name)

    def list_snippets(self) -> list[SearchSnippet]:
        """All snippets sorted by name."""
        with self._lock:
            return [self._snippets[name] for name in sorted(self._snippets)]

    def delete_snippet(self, name: str) -> bool:
        """Remove a snippet.

        Returns:
            True if it existed
        """
        with self._lock:
            if name not in self._snippets:
                return False
            del self._snippets[name]
            self._persist()
            return True
