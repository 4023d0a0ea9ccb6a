"""Line-local heuristics for labelling a match as comment, string, keyword or code.

This is deliberately not a tokenizer. Block comment continuations without a
leading '*' are reported as code, and only the first occurrence of each quote
character on the line is considered when looking for string literals.
"""

import re

from .models import MatchType


COMMENT_PREFIXES = ("//", "/*", "*", "#")
QUOTE_CHARS = ('"', "'", "`")
KEYWORDS = ("function", "const", "let", "var", "class", "import", "export", "interface", "type")

_KEYWORD_RE = re.compile(r"\b(?:" + "|".join(KEYWORDS) + r")\b", re.ASCII)


def is_comment_line(line: str) -> bool:
    """True if the stripped line starts with a comment marker."""
    return line.strip().startswith(COMMENT_PREFIXES)


def classify_match(line: str, start: int, length: int) -> MatchType:
    """Classify a match within a line.

    Args:
        line: Full line text
        start: 0-based match offset
        length: Match length

    Returns:
        The first MatchType whose rule fires: comment, string, keyword, code
    """
    if is_comment_line(line) or "/*" in line:
        return MatchType.COMMENT

    for quote in QUOTE_CHARS:
        opening = line.find(quote)
        if opening == -1 or opening >= start:
            continue
        # The closing quote must sit strictly after the match start
        if line.find(quote, start) > start:
            return MatchType.STRING

    if _KEYWORD_RE.search(line[:start + length]):
        return MatchType.KEYWORD

    return MatchType.CODE
