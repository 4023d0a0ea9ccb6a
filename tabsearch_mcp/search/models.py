"""Data models for in-memory document search."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional


class MatchType(str, Enum):
    """Lexical context a match was found in."""
    CODE = "code"
    COMMENT = "comment"
    STRING = "string"
    KEYWORD = "keyword"


def normalize_file_types(file_types: Iterable[str] | None) -> frozenset[str]:
    """Lower-case extensions and strip leading dots ('.TS' -> 'ts')."""
    if not file_types:
        return frozenset()
    if isinstance(file_types, str):
        file_types = [file_types]
    return frozenset(
        t.strip().lstrip(".").lower() for t in file_types if t and t.strip().lstrip(".")
    )


@dataclass(frozen=True)
class Document:
    """An open text buffer.

    Attributes:
        filename: Path-like unique name, also the sort key
        content: Full text, newline-delimited
    """
    filename: str
    content: str

    @classmethod
    def from_dict(cls, d: Any) -> "Document":
        """Deserialize from dictionary.

        Raises:
            ValueError: If the payload is not a {filename, content} mapping
        """
        if not isinstance(d, dict):
            raise ValueError(f"Document must be a mapping, got {type(d).__name__}")
        filename = d.get("filename")
        content = d.get("content")
        if not isinstance(filename, str) or not filename:
            raise ValueError("Document requires a non-empty string 'filename'")
        if not isinstance(content, str):
            raise ValueError(f"Document '{filename}' requires string 'content'")
        return cls(filename=filename, content=content)


@dataclass(frozen=True)
class SearchFilters:
    """Match semantics for one search invocation.

    Attributes:
        case_sensitive: Exact-case comparison when True
        whole_word: Wrap the query in word boundaries
        use_regex: Treat the query as a regular expression
        include_content: Copy the line text into each match
        file_types: Extension allow-list (empty means every file)
        exclude_comments: Skip lines that start like a comment
    """
    case_sensitive: bool = False
    whole_word: bool = False
    use_regex: bool = False
    include_content: bool = True
    file_types: frozenset[str] = field(default_factory=frozenset)
    exclude_comments: bool = False

    def __post_init__(self):
        object.__setattr__(self, "file_types", normalize_file_types(self.file_types))

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "caseSensitive": self.case_sensitive,
            "wholeWord": self.whole_word,
            "useRegex": self.use_regex,
            "includeContent": self.include_content,
            "fileTypes": sorted(self.file_types),
            "excludeComments": self.exclude_comments,
        }

    @classmethod
    def from_dict(cls, d: dict | None) -> "SearchFilters":
        """Deserialize from dictionary. Accepts camelCase or snake_case keys."""
        if not d:
            return cls()
        return cls().merged(d)

    def merged(self, overrides: dict | None) -> "SearchFilters":
        """Copy with the given fields replaced; omitted fields keep their values.

        Args:
            overrides: Filter fields with camelCase or snake_case keys
        """
        data = self.to_dict()
        for key, value in (overrides or {}).items():
            data[_SNAKE_TO_CAMEL.get(key, key)] = value

        return SearchFilters(
            case_sensitive=bool(data["caseSensitive"]),
            whole_word=bool(data["wholeWord"]),
            use_regex=bool(data["useRegex"]),
            include_content=bool(data["includeContent"]),
            file_types=normalize_file_types(data["fileTypes"]),
            exclude_comments=bool(data["excludeComments"]),
        )


_SNAKE_TO_CAMEL = {
    "case_sensitive": "caseSensitive",
    "whole_word": "wholeWord",
    "use_regex": "useRegex",
    "include_content": "includeContent",
    "file_types": "fileTypes",
    "exclude_comments": "excludeComments",
}


@dataclass(frozen=True)
class MatchCoordinates:
    """Where the host should jump to when a match is selected."""
    filename: str
    line: int
    column: int
    match_length: int

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "filename": self.filename,
            "line": self.line,
            "column": self.column,
            "matchLength": self.match_length,
        }


@dataclass(frozen=True)
class SearchMatch:
    """A single query occurrence.

    Attributes:
        filename: Document the match belongs to
        line: 1-based line number
        column: 1-based start column within the line
        content: Raw line text, or '' when content is not included
        match_length: Length of the matched text (always > 0)
        type: Lexical context of the match
    """
    filename: str
    line: int
    column: int
    content: str
    match_length: int
    type: MatchType = MatchType.CODE

    @property
    def key(self) -> tuple[str, int, int]:
        """Identity used for selection and dedup."""
        return (self.filename, self.line, self.column)

    def coordinates(self) -> MatchCoordinates:
        return MatchCoordinates(self.filename, self.line, self.column, self.match_length)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "filename": self.filename,
            "line": self.line,
            "column": self.column,
            "content": self.content,
            "matchLength": self.match_length,
            "type": self.type.value,
        }


@dataclass
class SearchResult:
    """Outcome of one search invocation.

    Attributes:
        query: Query as submitted
        filters: Filters used
        matches: Matches sorted by (filename, line)
        total_count: Number of matches found
        searched: False when the query was empty and nothing ran
        used_fallback: True when a regex failed to compile and literal matching was used
        regex_error: Compiler message for the rejected regex, if any
        cancelled: True when the search stopped before the last document
    """
    query: str
    filters: SearchFilters
    matches: list[SearchMatch] = field(default_factory=list)
    total_count: int = 0
    searched: bool = True
    used_fallback: bool = False
    regex_error: Optional[str] = None
    cancelled: bool = False

    @classmethod
    def empty(cls, query: str, filters: SearchFilters) -> "SearchResult":
        """Result for a query that was rejected before searching."""
        return cls(query=query, filters=filters, searched=False)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "query": self.query,
            "filters": self.filters.to_dict(),
            "matches": [m.to_dict() for m in self.matches],
            "totalCount": self.total_count,
            "searched": self.searched,
            "usedFallback": self.used_fallback,
            "regexError": self.regex_error,
            "cancelled": self.cancelled,
        }


@dataclass
class HistoryEntry:
    """A committed query.

    Attributes:
        query: Query text (unique within the history)
        timestamp: Epoch milliseconds
        filters: Filter snapshot at commit time
    """
    query: str
    timestamp: int
    filters: Optional[SearchFilters] = None

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        d: dict = {"query": self.query, "timestamp": self.timestamp}
        if self.filters is not None:
            d["filters"] = self.filters.to_dict()
        return d

    @classmethod
    def from_dict(cls, d: dict) -> "HistoryEntry":
        """Deserialize from dictionary."""
        filters = d.get("filters")
        return cls(
            query=d["query"],
            timestamp=int(d["timestamp"]),
            filters=SearchFilters.from_dict(filters) if filters is not None else None,
        )


@dataclass
class SearchSnippet:
    """A named query + filters preset."""
    name: str
    query: str
    filters: SearchFilters = field(default_factory=SearchFilters)

    def to_dict(self) -> dict:
        """Serialize to dictionary (flat, like the host stores it)."""
        return {"query": self.query, **self.filters.to_dict()}

    @classmethod
    def from_dict(cls, name: str, d: dict) -> "SearchSnippet":
        """Deserialize from dictionary."""
        return cls(name=name, query=d["query"], filters=SearchFilters.from_dict(d))
