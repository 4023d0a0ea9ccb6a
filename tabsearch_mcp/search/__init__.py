"""In-memory multi-file search over open documents."""

from .models import (
    Document,
    HistoryEntry,
    MatchCoordinates,
    MatchType,
    SearchFilters,
    SearchMatch,
    SearchResult,
    SearchSnippet,
)
from .pattern import CompiledPattern, compile_pattern
from .classifier import classify_match
from .engine import SearchEngine, available_file_types, extension_of
from .navigator import ResultNavigator
from .storage import JsonFileStore, KeyValueStore, MemoryStore, StorageError
from .history import SearchHistory, SnippetStore
from .config import SearchConfig, load_config
from .session import SearchSession

__all__ = [
    "Document",
    "HistoryEntry",
    "MatchCoordinates",
    "MatchType",
    "SearchFilters",
    "SearchMatch",
    "SearchResult",
    "SearchSnippet",
    "CompiledPattern",
    "compile_pattern",
    "classify_match",
    "SearchEngine",
    "available_file_types",
    "extension_of",
    "ResultNavigator",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "StorageError",
    "SearchHistory",
    "SnippetStore",
    "SearchConfig",
    "load_config",
    "SearchSession",
]
