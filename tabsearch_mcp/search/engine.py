"""Line-scanning search over in-memory documents."""

import logging
from typing import Any, Callable, Iterable, Optional

from .classifier import classify_match, is_comment_line
from .models import Document, SearchFilters, SearchMatch, SearchResult
from .pattern import compile_pattern

logger = logging.getLogger(__name__)


def extension_of(filename: str) -> Optional[str]:
    """Return the lower-cased text after the last '.', or None without a dot."""
    if "." not in filename:
        return None
    return filename.rsplit(".", 1)[1].lower()


def coerce_documents(documents: Any) -> list[Document]:
    """Normalize the host's document list.

    Args:
        documents: List of Document objects or {filename, content} mappings

    Returns:
        List of Document objects in the given order

    Raises:
        TypeError: If documents is not a list or tuple
        ValueError: If an item is not a valid document
    """
    if not isinstance(documents, (list, tuple)):
        raise TypeError(f"documents must be a list, got {type(documents).__name__}")
    return [d if isinstance(d, Document) else Document.from_dict(d) for d in documents]


def available_file_types(documents: Iterable[Document]) -> list[str]:
    """Sorted unique extensions present in the documents."""
    types = {extension_of(d.filename) for d in documents}
    types.discard(None)
    types.discard("")
    return sorted(types)


class SearchEngine:
    """Searches a snapshot of documents line by line.

    Holds no per-search state, so one engine can serve any number of calls.
    """

    def search(
        self,
        documents: Any,
        query: str,
        filters: SearchFilters | None = None,
        should_cancel: Callable[[], bool] | None = None,
    ) -> SearchResult:
        """Find every match of query in documents.

        Args:
            documents: List of Document objects or {filename, content} mappings
            query: Raw query string
            filters: Match semantics (defaults to SearchFilters())
            should_cancel: Checked between documents; returning True stops
                the search and returns the matches found so far

        Returns:
            SearchResult with matches sorted by (filename, line)
        """
        filters = filters or SearchFilters()
        docs = coerce_documents(documents)

        pattern = compile_pattern(
            query,
            case_sensitive=filters.case_sensitive,
            whole_word=filters.whole_word,
            use_regex=filters.use_regex,
        )
        if pattern is None:
            return SearchResult.empty(query, filters)

        result = SearchResult(
            query=query,
            filters=filters,
            used_fallback=pattern.used_fallback,
            regex_error=pattern.error,
        )
        matches: list[SearchMatch] = []
        scanned = 0

        for doc in docs:
            if should_cancel is not None and should_cancel():
                logger.debug(f"Search for {query!r} cancelled after {scanned} documents")
                result.cancelled = True
                break

            if not self._passes_file_filter(doc.filename, filters.file_types):
                continue
            scanned += 1

            for line_num, line in enumerate(doc.content.split("\n"), start=1):
                if not line.strip():
                    continue
                if filters.exclude_comments and is_comment_line(line):
                    continue

                for start, length in pattern.find_spans(line):
                    matches.append(SearchMatch(
                        filename=doc.filename,
                        line=line_num,
                        column=start + 1,
                        content=line if filters.include_content else "",
                        match_length=length,
                        type=classify_match(line, start, length),
                    ))

        matches.sort(key=lambda m: (m.filename, m.line))
        result.matches = matches
        result.total_count = len(matches)

        logger.debug(
            f"Search for {query!r}: {result.total_count} matches in "
            f"{scanned}/{len(docs)} documents"
        )
        return result

    @staticmethod
    def _passes_file_filter(filename: str, file_types: frozenset[str]) -> bool:
        """Check a filename against the extension allow-list."""
        if not file_types:
            return True
        ext = extension_of(filename)
        # Files without an extension cannot be excluded by extension
        if ext is None:
            return True
        return ext in file_types
