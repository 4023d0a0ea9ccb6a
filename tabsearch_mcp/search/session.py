"""Search session that ties the engine, navigator and history together."""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Callable, Optional

from .config import SearchConfig, load_config
from .engine import SearchEngine
from .history import SearchHistory, SnippetStore
from .models import HistoryEntry, SearchFilters, SearchResult
from .navigator import MatchSelectedCallback, ResultNavigator
from .storage import JsonFileStore, KeyValueStore, MemoryStore

logger = logging.getLogger(__name__)


def _now_millis() -> int:
    return int(time.time() * 1000)


class SearchSession:
    """Runs committed searches and keeps their side effects in one place.

    A commit runs the engine, records the query in the history and loads the
    results into the navigator. Blank queries do none of that.
    """

    def __init__(
        self,
        engine: SearchEngine | None = None,
        navigator: ResultNavigator | None = None,
        history: SearchHistory | None = None,
        snippets: SnippetStore | None = None,
        default_filters: SearchFilters | None = None,
    ):
        self.engine = engine or SearchEngine()
        self.navigator = navigator or ResultNavigator()
        self.history = history or SearchHistory()
        self.snippets = snippets or SnippetStore()
        self.default_filters = default_filters or SearchFilters()
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        root: Path,
        config: SearchConfig | None = None,
        store: KeyValueStore | None = None,
        on_match_selected: MatchSelectedCallback | None = None,
    ) -> "SearchSession":
        """Build a session persisting history and snippets under root.

        Args:
            root: Directory holding .tabsearch/
            config: Preloaded config (loaded from root if omitted)
            store: Persistence override (JSON files under the config's
                storage_dir if omitted)
            on_match_selected: Navigation callback for the host
        """
        config = config or load_config(root)
        store = store or JsonFileStore(config.storage_path(root))
        return cls(
            navigator=ResultNavigator(on_match_selected),
            history=SearchHistory(store, limit=config.history_limit),
            snippets=SnippetStore(store),
            default_filters=config.default_filters,
        )

    @classmethod
    def in_memory(cls, on_match_selected: MatchSelectedCallback | None = None) -> "SearchSession":
        store = MemoryStore()
        return cls(
            navigator=ResultNavigator(on_match_selected),
            history=SearchHistory(store),
            snippets=SnippetStore(store),
        )

    def commit(
        self,
        documents: Any,
        query: str,
        filters: SearchFilters | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> SearchResult:
        """Run a search the user submitted.

        Args:
            documents: Document snapshot to search
            query: Raw query string
            filters: Match semantics (session defaults if omitted)
            should_cancel: Cooperative cancellation check between documents

        Returns:
            SearchResult (empty with searched=False for a blank query)
        """
        filters = filters or self.default_filters
        with self._lock:
            result = self.engine.search(documents, query, filters, should_cancel)
            if not result.searched:
                logger.debug("Ignoring blank query")
                return result

            self.history.record_query(HistoryEntry(
                query=query,
                timestamp=_now_millis(),
                filters=filters,
            ))
            self.navigator.load(result.matches)
            return result

    def replay(self, entry: HistoryEntry, documents: Any) -> SearchResult:
        """Re-run a history entry with the filters it was committed with."""
        return self.commit(documents, entry.query, entry.filters)

    def save_snippet(self, name: str, query: str, filters: SearchFilters | None = None):
        """Save query and filters under name (overwrites silently)."""
        return self.snippets.save_snippet(name, query, filters or self.default_filters)

    def run_snippet(self, name: str, documents: Any) -> Optional[SearchResult]:
        """Commit a saved snippet.

        Returns:
            SearchResult, or None if no snippet has that name
        """
        snippet = self.snippets.load_snippet(name)
        if snippet is None:
            return None
        return self.commit(documents, snippet.query, snippet.filters)
