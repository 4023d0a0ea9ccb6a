"""Query compilation into reusable line matchers."""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledPattern:
    """A compiled query ready to scan lines.

    Attributes:
        regex: Compiled expression
        used_fallback: True if a user regex was rejected and the query
            is matched literally instead
        error: Compiler message for the rejected regex
    """
    regex: re.Pattern
    used_fallback: bool = False
    error: Optional[str] = None

    def find_spans(self, line: str) -> Iterator[tuple[int, int]]:
        """Yield (start, length) for every non-overlapping match, left to right.

        Zero-width matches are skipped; scanning resumes after each match end.
        """
        for match in self.regex.finditer(line):
            length = match.end() - match.start()
            if length > 0:
                yield match.start(), length


def compile_pattern(
    query: str,
    case_sensitive: bool = False,
    whole_word: bool = False,
    use_regex: bool = False,
) -> Optional[CompiledPattern]:
    """Build a matcher for a query.

    Args:
        query: Raw query string
        case_sensitive: Exact-case matching when True
        whole_word: Surround the literal query with word boundaries
        use_regex: Compile the query as a regular expression

    Returns:
        CompiledPattern, or None if the query is blank
    """
    if not query or not query.strip():
        return None

    flags = 0 if case_sensitive else re.IGNORECASE

    if use_regex:
        try:
            return CompiledPattern(re.compile(query, flags))
        except re.error as e:
            logger.warning(f"Invalid regex {query!r}: {e}. Falling back to literal search.")
            return CompiledPattern(
                re.compile(re.escape(query), flags),
                used_fallback=True,
                error=str(e),
            )

    if whole_word:
        # Word boundaries are ASCII-only: 'caf' is a whole word in 'café'
        return CompiledPattern(re.compile(rf"\b{re.escape(query)}\b", flags | re.ASCII))

    return CompiledPattern(re.compile(re.escape(query), flags))
